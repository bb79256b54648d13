"""Test factories for generating test data."""

from tests.factories.organization import MemberFactory, OrganizationFactory, add_member
from tests.factories.user import UserFactory


__all__ = [
    "MemberFactory",
    "OrganizationFactory",
    "UserFactory",
    "add_member",
]
