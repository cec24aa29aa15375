from pydantic import BaseModel

from events_api.schemas.events import EventOut
from events_api.schemas.users import UserOut


class RegistrationOut(BaseModel):
    event: EventOut
    user: UserOut

    class Config:
        from_attributes = True


class RegistrationResponse(BaseModel):
    message: str
    registration: RegistrationOut
