from datetime import datetime
from typing import Optional

from ninja import Schema


class ProductAccessResponse(Schema):
    hasAccess: bool
    productId: str
    accessExpiresAt: Optional[datetime] = None
    isLifetime: bool = False


class AccessItemResponse(Schema):
    productId: str
    productName: str
    productType: str
    accessGrantedAt: datetime
    accessExpiresAt: Optional[datetime] = None
    isLifetime: bool
    grantedBy: str
