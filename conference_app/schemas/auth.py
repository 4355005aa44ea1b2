"""
Request actor schemas
"""

from pydantic import BaseModel

from conference_app.models.user import Role

__all__ = ["TokenPayload", "Actor"]

class TokenPayload(BaseModel):
    """Claims carried by an actor bearer token"""
    sub: str

class Actor(BaseModel):
    """Authenticated caller, built per request and discarded with it"""
    user_id: str
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
