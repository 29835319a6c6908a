"""Reference adapters for the collaborator ports.

``adapters.memory`` needs nothing beyond the core; ``adapters.mongo``
needs Motor. Import the subpackage you use.
"""
