from typing import List

from django.http import HttpRequest
from ninja import Router

from core.jwt_auth import JWTAuth

from apps.entitlements.schemas import AccessItemResponse, ProductAccessResponse
from apps.entitlements.services.access_service import AccessService

router = Router(tags=["access"])
access_service = AccessService()


@router.get("/products/{product_id}", response=ProductAccessResponse, auth=JWTAuth())
def check_product_access(request: HttpRequest, product_id: str):
    access = access_service.get_active_access(request.auth, product_id)
    return ProductAccessResponse(
        hasAccess=access is not None,
        productId=product_id,
        accessExpiresAt=access.access_expires_at if access else None,
        isLifetime=bool(access and access.is_lifetime),
    )


@router.get("/me", response=List[AccessItemResponse], auth=JWTAuth())
def list_my_access(request: HttpRequest):
    return [
        AccessItemResponse(
            productId=str(access.product_id),
            productName=access.product.name,
            productType=access.product_type,
            accessGrantedAt=access.access_granted_at,
            accessExpiresAt=access.access_expires_at,
            isLifetime=access.is_lifetime,
            grantedBy=access.granted_by,
        )
        for access in access_service.list_live_access(request.auth)
    ]
