"""Cluster acceptance checks for service-broker provisioned Kubernetes."""

__version__ = "0.1.0"
