"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- The HostedControlPlane status fields the bootstrap chain reads
- The kubeconfig document the bootstrap chain reads and writes
"""
