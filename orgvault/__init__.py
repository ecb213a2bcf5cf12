"""orgvault: organization provisioning and subscription services.

To use the Flask app:
    from orgvault.flask_app import create_app

To use the domain layer without Flask:
    from orgvault.core.subscription import OrganizationSubscriptionAccessPolicies
"""
