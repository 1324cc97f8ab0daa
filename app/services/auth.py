import time
from typing import Any, Dict

import jwt

from app.config import settings

def create_jwt(user_id: str) -> str:
    payload = {"sub": str(user_id), "iat": int(time.time())}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")

def decode_jwt(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
