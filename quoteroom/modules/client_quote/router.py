"""Client quote API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quoteroom.api.dependencies import get_actor_id
from quoteroom.database.session import get_db
from quoteroom.modules.client_quote.schemas import ClientQuoteCreate, ClientQuoteResponse
from quoteroom.modules.client_quote.service import ClientQuoteService
from quoteroom.schemas.responses import ErrorResponse

router = APIRouter(
    tags=["client-quotes"],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


@router.post(
    "/rfqs/{rfq_id}/client-quotes",
    response_model=ClientQuoteResponse,
    status_code=201,
)
async def create_client_quote(
    rfq_id: uuid.UUID,
    body: ClientQuoteCreate,
    actor_id: uuid.UUID | None = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Generate a client quote from the RFQ's accepted supplier quotes."""
    svc = ClientQuoteService(db)
    client_quote = await svc.create_client_quote(
        rfq_id,
        accepted_quote_ids=body.accepted_quote_ids,
        title=body.title,
        description=body.description,
        markup_percent=body.markup_percent,
        line_markups=body.line_markups,
        valid_until=body.valid_until,
        created_by=actor_id,
    )
    return ClientQuoteResponse.model_validate(client_quote)


@router.get("/rfqs/{rfq_id}/client-quotes", response_model=list[ClientQuoteResponse])
async def list_client_quotes(
    rfq_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    svc = ClientQuoteService(db)
    client_quotes = await svc.list_client_quotes(rfq_id)
    return [ClientQuoteResponse.model_validate(cq) for cq in client_quotes]


@router.get("/client-quotes/{client_quote_id}", response_model=ClientQuoteResponse)
async def get_client_quote(
    client_quote_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    svc = ClientQuoteService(db)
    client_quote = await svc.get_client_quote(client_quote_id)
    return ClientQuoteResponse.model_validate(client_quote)
