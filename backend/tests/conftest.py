"""
Shared test setup: backend on sys.path, testing settings and model factories
"""

import os
import sys
from datetime import datetime, UTC
from uuid import uuid4

# Add backend to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
os.environ.setdefault("TESTING", "true")

import models  # noqa: E402  registers all mappers
from models.case import Case, CaseStatus  # noqa: E402
from models.document import Document  # noqa: E402
from models.user import User, UserRole  # noqa: E402

def make_user(**overrides) -> User:
    values = dict(
        id=uuid4(),
        email="max.mustermann@example.com",
        hashed_password="x",
        first_name="Max",
        last_name="Mustermann",
        role=UserRole.PRACTITIONER,
        practitioner_number=25001,
    )
    values.update(overrides)
    return User(**values)

def make_case(owner: User = None, **overrides) -> Case:
    owner = owner if owner is not None else make_user()
    values = dict(
        id=uuid4(),
        title="Auffahrunfall",
        file_number="GUT-25001-01",
        practitioner_number=owner.practitioner_number or 25001,
        sequence_number=1,
        status=CaseStatus.OPEN,
        case_date=datetime(2024, 5, 2, 10, 0, tzinfo=UTC),
        updated_at=datetime(2024, 5, 3, 10, 0, tzinfo=UTC),
        client_data={"vorname": "Erika", "nachname": "Musterfrau", "mandantennummer": "MD-000101"},
        first_party=None,
        second_party=None,
        damage=None,
        privacy_accepted=False,
        transmission_count=0,
        created_by=owner.id,
        assigned_to=owner.id,
    )
    values.update(overrides)
    case = Case(**values)
    case.owner = owner
    return case

def make_document(case_id=None, name="dokument.pdf", storage_path=None, **overrides) -> Document:
    values = dict(
        id=uuid4(),
        name=name,
        mime_type="application/pdf",
        size=100,
        storage_path=storage_path if storage_path is not None else f"GUTACHTER/25001/00001/MD-000101/sonstiges/{name}",
        case_id=case_id or uuid4(),
        uploaded_by=uuid4(),
        category="sonstiges",
        tags=[],
    )
    values.update(overrides)
    return Document(**values)
