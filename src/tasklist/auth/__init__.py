"""Authentication.

Learn: One authentication path: username/password → signed JWT →
`Authorization: Bearer <token>` on every protected request. The token's
subject (the username) is the identity that scopes every todo query.
"""
