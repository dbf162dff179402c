"""
The credentials file referenced by the credentials= mount option.
"""

CIFS_CREDENTIALS = "username={vars[username]}\npassword={vars[password]}\n"

# only written when a domain or workgroup was given
CIFS_CREDENTIALS_DOMAIN = "domain={vars[domain]}\n"
