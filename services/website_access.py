"""
Authorization rules for website resources.
"""

from __future__ import annotations

from repositories.website_repository import WebsiteRepository
from shared.auth import AuthContext


async def can_view_website(
    auth: AuthContext, website_id: str, websites: WebsiteRepository
) -> bool:
    """Return True if the caller may read statistics for *website_id*.

    Admins see everything. A share token grants exactly the website it was
    issued for. Otherwise the caller must own the website or belong to the
    team it is shared with.
    """
    if auth.user is not None and auth.user.is_admin:
        return True

    if auth.share_token is not None and auth.share_token.get("websiteId") == website_id:
        return True

    if auth.user is None:
        return False

    website = await websites.find_by_id(website_id)
    if website is None:
        return False

    if website.user_id == auth.user.id:
        return True

    if website.team_id:
        membership = await websites.find_team_membership(website.team_id, auth.user.id)
        return membership is not None

    return False
