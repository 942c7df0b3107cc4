# schoolhub/schemas/auth.py
from pydantic import BaseModel
from typing import List

class LoginIn(BaseModel):
    username: str
    password: str

class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    full_name: str
    roles: List[str]

class MeOut(BaseModel):
    id: str
    username: str
    full_name: str
    roles: List[str]
