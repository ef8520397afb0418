"""Evidence source adapters.

Each adapter maps one upstream's response shape onto OrganizationMention.
"""
