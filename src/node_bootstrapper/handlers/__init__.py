"""
Handlers package - Contains the Kopf event handlers of the node bootstrapper.

- hosted_control_plane.py: bootstrap chain for HostedControlPlane resources
"""
