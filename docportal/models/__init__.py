from docportal.models.models import PageVisit, RevokedToken, ROLES, User

__all__ = [
    "User",
    "RevokedToken",
    "PageVisit",
    "ROLES",
]
