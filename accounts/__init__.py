"""
Huddle Accounts App

Workspace actors and their ordered roles:
- User model with user / admin / super_admin roles
- Session token issuing and verification (simplejwt)
- Actor administration under the admin hierarchy
"""
