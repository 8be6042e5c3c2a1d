# iptables_proxy/api/routes.py
"""
Control API Endpoints

- POST /create: create or replace the route for a public port
- POST /remove: remove the route for a public port
- GET /routes: list active routes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from .. import schemas
from ..core.forwarding_service import ForwardingService, RouteNotFoundError

logger = logging.getLogger('iptables-proxy.api')

router = APIRouter()


def get_service(request: Request) -> ForwardingService:
    return request.app.state.forwarding_service


@router.post("/create", response_model=schemas.CreateResponse)
async def create(payload: schemas.CreateRequest, service: ForwardingService = Depends(get_service)):
    logger.debug(f"Received request to create route: {payload}")

    result = await service.create(
        public_port=payload.public_port,
        inner_ip=payload.inner_ip,
        inner_port=payload.inner_port,
        protocol=payload.protocol,
    )

    return schemas.CreateResponse(
        route=result.route.to_dict(),
        replaced=result.replaced.to_dict() if result.replaced else None,
        commands=[o.to_dict() for o in result.outcomes],
    )


@router.post("/remove", response_model=schemas.RemoveResponse)
async def remove(payload: schemas.RemoveRequest, service: ForwardingService = Depends(get_service)):
    logger.debug(f"Received request to remove route: {payload}")

    try:
        result = await service.remove(payload.public_port)
    except RouteNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return schemas.RemoveResponse(
        route=result.route.to_dict(),
        commands=[o.to_dict() for o in result.outcomes],
    )


@router.get("/routes", response_model=schemas.RouteListResponse)
def list_routes(service: ForwardingService = Depends(get_service)):
    return schemas.RouteListResponse(routes=[r.to_dict() for r in service.routes()])
