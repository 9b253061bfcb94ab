from pydantic import BaseModel
from typing import Optional

# ======================
# TOKEN SCHEMAS
# ======================

# Claims read from tokens issued by the auth service
class TokenData(BaseModel):
    email: Optional[str] = None
    # "user", "admin" or "super_admin"
    role: Optional[str] = None
