"""
tfblueprint - standard Terraform environment modules for AWS, Azure and GCP.
"""

__version__ = "1.0.0"
