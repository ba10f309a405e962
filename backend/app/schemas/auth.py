from pydantic import BaseModel, ConfigDict, EmailStr, Field

class GenerateUrlRequest(BaseModel):
    email_address: EmailStr
    success_url: str = ''

class ExchangeTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)

class AccountOut(BaseModel):
    """Authorization object handed back after a successful code exchange."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email_address: str = Field(alias='emailAddress')
