"""
NodeKit - project-local Node.js provisioning.
"""

__version__ = "0.1.0"
