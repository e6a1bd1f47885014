# app/schemas/tokens.py
from app.schemas.base import ApiModel
from app.schemas.user import UserOut

class Token(ApiModel):
    user: UserOut
    access_token: str
