import asyncio
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from ..core.clients import get_credential_store, get_gateway
from ..schemas.auth import AccountOut, ExchangeTokenRequest, GenerateUrlRequest
from ..services.credential_store import CredentialStore
from ..services.mailbox_gateway import MailboxGateway

router = APIRouter()
log = logging.getLogger(__name__)

@router.post("/generate-url", response_class=PlainTextResponse)
def generate_auth_url(payload: GenerateUrlRequest, gateway: MailboxGateway = Depends(get_gateway)):
    """Build the identity provider's hosted-authentication URL."""
    return gateway.auth_url(payload.email_address, payload.success_url)

@router.post("/exchange-token")
async def exchange_token(
    payload: ExchangeTokenRequest,
    gateway: MailboxGateway = Depends(get_gateway),
    store: CredentialStore = Depends(get_credential_store),
):
    """Exchange an authorization code for an access token and store the credential."""
    grant = await gateway.exchange_code(payload.token)
    log.info("Access token was generated")
    credential = await asyncio.to_thread(store.create_or_update, grant.email_address, grant.access_token, grant.account_id)
    return AccountOut(id=credential.id, email_address=credential.email_address).model_dump(by_alias=True)
