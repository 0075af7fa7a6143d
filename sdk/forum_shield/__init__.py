from forum_shield.client import ForumShieldAPIError, ForumShieldClient, ForumShieldError

__all__ = ["ForumShieldClient", "ForumShieldError", "ForumShieldAPIError"]
