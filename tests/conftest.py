import pytest

from support_agent.models.domain.ticket_domain import Ticket
from tests.fakes import Fakes


@pytest.fixture
def fakes() -> Fakes:
    return Fakes()


@pytest.fixture
def sample_ticket() -> Ticket:
    return Ticket(
        id="T1",
        subject="Help",
        customer={"name": "Ana", "email": "a@x.com"},
        messages=[{"body": "Can't log in"}],
        source="manual",
    )
