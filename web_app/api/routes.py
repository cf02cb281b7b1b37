"""Route table for qui-vive.

    GET    /health      store round-trip probe
    POST   /key         store a payload under a random id
    POST   /key/{id}    store a payload under a caller-chosen id
    GET    /key/{id}    fetch a payload
    DELETE /key/{id}    delete an entry
    POST   /url         store a redirect
    GET    /url/{id}    follow a redirect
    POST   /inv         store a referral redirect
    GET    /inv/{id}    follow a referral redirect
    GET    /{id}        follow any entry that has a URL

Anything else answers 404. Error statuses are produced by the exception
handlers installed in ``create_app``.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse, Response

from quivive.common.headers import (
    DESTINATION_URL_HEADERS,
    EXPIRATION_HEADER,
    ID_PARAM_HEADERS,
    NO_INDEX_HEADERS,
    SOURCE_PARAM_HEADERS,
    first_header,
)
from quivive.common.url_builder import build_link, to_location
from quivive.common.validators import is_valid_id

router = APIRouter()


def valid_id(entry_id: str) -> str:
    """Path dependency: identifiers outside [A-Za-z0-9_-]+ are not routes."""
    if not is_valid_id(entry_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return entry_id


async def read_body(request: Request, limit: int) -> bytes:
    """Read the request body, stopping once it is known to exceed ``limit``."""
    chunks = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            break
    return b"".join(chunks)


def text_response(body: str) -> PlainTextResponse:
    return PlainTextResponse(body, headers=NO_INDEX_HEADERS)


def redirect_or_404(url):
    if url is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    # Stored URL goes out as is, only non-ASCII parts are encoded
    return Response(
        status_code=status.HTTP_301_MOVED_PERMANENTLY,
        headers={"Location": to_location(url)},
    )


@router.get("/health")
async def health_check(request: Request):
    """Write and read back a timestamp entry."""
    service = request.app.state.service

    if not await service.health_check():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store unavailable",
        )

    return PlainTextResponse("OK")


@router.post("/key")
async def create_key(request: Request):
    service = request.app.state.service
    ttl = service.expiration_for(request.headers.get(EXPIRATION_HEADER))

    body = await read_body(request, service.max_value_size)
    entry = await service.create_key(body, ttl)

    return text_response(build_link(service.external_url, "key", entry.id) + "\n")


@router.post("/key/{entry_id}")
async def create_key_with_id(request: Request, entry_id: str = Depends(valid_id)):
    service = request.app.state.service
    ttl = service.expiration_for(request.headers.get(EXPIRATION_HEADER))

    # Refuse before reading the body
    service.check_custom_id(entry_id)

    body = await read_body(request, service.max_value_size)
    entry = await service.create_key(body, ttl, custom_id=entry_id)

    return text_response(build_link(service.external_url, "key", entry.id) + "\n")


@router.get("/key/{entry_id}")
async def get_key(request: Request, entry_id: str = Depends(valid_id)):
    service = request.app.state.service

    value = await service.get_value(entry_id)

    if value is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    return text_response(value)


@router.delete("/key/{entry_id}")
async def delete_key(request: Request, entry_id: str = Depends(valid_id)):
    """Always 200, even if the entry did not exist."""
    service = request.app.state.service

    await service.delete(entry_id)

    return PlainTextResponse("")


@router.post("/url")
async def create_url(request: Request):
    service = request.app.state.service
    ttl = service.expiration_for(request.headers.get(EXPIRATION_HEADER))

    body = await read_body(request, service.max_value_size)
    entry = await service.create_url(body, ttl)

    return text_response(build_link(service.external_url, entry.id) + "\n")


@router.get("/url/{entry_id}")
async def follow_url(request: Request, entry_id: str = Depends(valid_id)):
    service = request.app.state.service
    return redirect_or_404(await service.get_redirect(entry_id))


@router.post("/inv")
async def create_referral(request: Request):
    """Store a referral built from the Destination-Url header."""
    service = request.app.state.service
    headers = request.headers
    ttl = service.expiration_for(headers.get(EXPIRATION_HEADER))

    destination = first_header(headers, DESTINATION_URL_HEADERS)
    if destination is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Destination-Url header is required",
        )

    body = await read_body(request, service.max_value_size)
    entry = await service.create_referral(
        body,
        destination,
        id_param=first_header(headers, ID_PARAM_HEADERS),
        source_param=first_header(headers, SOURCE_PARAM_HEADERS),
        ttl=ttl,
    )

    return text_response(build_link(service.external_url, entry.id) + "\n")


@router.get("/inv/{entry_id}")
async def follow_referral(request: Request, entry_id: str = Depends(valid_id)):
    service = request.app.state.service
    return redirect_or_404(await service.get_redirect(entry_id))


@router.get("/{entry_id}")
async def follow_any(request: Request, entry_id: str = Depends(valid_id)):
    """Redirect if the entry has a URL. Payloads are never exposed here."""
    service = request.app.state.service
    return redirect_or_404(await service.get_redirect(entry_id))
