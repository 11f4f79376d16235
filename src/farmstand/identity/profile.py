"""Buyer profile, remembered between checkouts.

Profiles are keyed by the hosted auth service's user id. Checkout upserts the
latest address so the next checkout form can be prefilled.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from farmstand.domain import farmstand


@farmstand.aggregate
class Profile:
    auth_user_id = Identifier(identifier=True, required=True)
    email = String(max_length=254)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=20)
    postal_code = String(max_length=10)
    address = String(max_length=255)
    city = String(max_length=100)
    country = String(max_length=2, default="JP")
    updated_at = DateTime()

    def update_contact(self, **details):
        for name, value in details.items():
            if value is not None:
                setattr(self, name, value)
        self.updated_at = datetime.now(UTC)


@farmstand.event(part_of=Profile)
class ProfileSaved:
    __version__ = 1

    auth_user_id = Identifier(required=True)
    email = String(max_length=254)


@farmstand.command(part_of=Profile)
class UpsertProfile:
    auth_user_id = Identifier(required=True)
    email = String(max_length=254)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=20)
    postal_code = String(max_length=10)
    address = String(max_length=255)
    city = String(max_length=100)
    country = String(max_length=2)


@farmstand.command_handler(part_of=Profile)
class ProfileHandler:
    @handle(UpsertProfile)
    def upsert_profile(self, command):
        repo = current_domain.repository_for(Profile)
        try:
            profile = repo.get(command.auth_user_id)
        except ObjectNotFoundError:
            profile = Profile(auth_user_id=command.auth_user_id)

        profile.update_contact(
            email=command.email,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
            postal_code=command.postal_code,
            address=command.address,
            city=command.city,
            country=command.country,
        )
        profile.raise_(ProfileSaved(auth_user_id=profile.auth_user_id, email=profile.email))
        repo.add(profile)
        return profile.auth_user_id
