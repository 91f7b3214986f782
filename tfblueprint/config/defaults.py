"""
Default settings for tfblueprint.

These are the default values used when no user configuration exists.
"""

DEFAULT_SETTINGS = {
    "version": "1.0.0",

    # Terraform binary and command timeout (seconds)
    "terraform_binary": "terraform",
    "command_timeout": 1800,

    # Where `generate` writes modules when no --output is given
    "output_dir": "infrastructure",

    "default_provider": "aws",

    # Region written to example .tfvars files, per provider
    "regions": {
        "aws": "us-east-1",
        "azure": "eastus",
        "gcp": "us-central1",
    },

    # Tag values written to example .tfvars files
    "owner_email": "platform-team@example.com",
    "cost_center": "engineering",

    "log_level": "INFO",

    # Ask before running these commands without --auto-approve
    "confirmations": {
        "apply": True,
        "destroy": True,
    },
}
