"""
Request models shared by the onboarding routers.
"""
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, EmailStr
from onboarding.modules.users.domain.profile import BioData, Gender


class BioDataRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Gender = Gender.UNKNOWN
    date_of_birth: Optional[date] = None

    def to_domain(self) -> BioData:
        return BioData(
            first_name=self.first_name,
            last_name=self.last_name,
            gender=self.gender,
            date_of_birth=self.date_of_birth,
        )


class RegistrationRequest(BaseModel):
    phone_number: str
    first_name: str
    last_name: str
    gender: Gender = Gender.UNKNOWN
    date_of_birth: Optional[date] = None
    email: Optional[EmailStr] = None
    role_ids: List[str] = []
