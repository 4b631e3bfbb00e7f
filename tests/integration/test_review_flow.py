"""Integration tests for the complete two-party review workflow.

Tests end-to-end flows over HTTP:
1. Upload → internal approval → passcode → external approval → read-only
2. Internal approval by a colleague reassigns the review
3. Logged-in external user approves from their own queue
"""

import base64
import io
import re

import pytest
from reportlab.pdfgen import canvas

from docreview.core.workflow.states import WorkflowStatus
from docreview.db.models import ExternalAccessCredential, Workflow, WorkflowStamp
from docreview.db.seed import seed_default_users


pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_pdf() -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    c.drawString(72, 720, "Services agreement")
    c.showPage()
    c.save()
    return buf.getvalue()


def login(client, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def passcode_from(html: str) -> str:
    match = re.search(r'class="otp-code">(\d{6})<', html)
    assert match, "passcode missing from email"
    return match.group(1)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def seeded(db_session):
    users = seed_default_users(db_session)
    db_session.commit()
    return users


@pytest.fixture()
def created_workflow(client, seeded):
    """A workflow uploaded by the admin and assigned to internal1."""
    admin = login(client, "admin@company.com", "Admin123!")
    response = client.post(
        "/api/workflows",
        data={
            "title": "Services agreement",
            "internal_reviewer_id": str(seeded["internal1@company.com"].id),
            "external_reviewer_email": "ext@test.com",
        },
        files={"pdf_file": ("agreement.pdf", make_pdf(), "application/pdf")},
        headers=admin,
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestTokenApprovalFlow:

    def test_full_flow(self, client, db_session, seeded, created_workflow, notifier):
        workflow_id = created_workflow["id"]
        reviewer = login(client, "internal1@company.com", "Internal123!")

        queue = client.get("/api/internal-review/assigned", headers=reviewer)
        assert [w["id"] for w in queue.json()] == [workflow_id]

        approved = client.post(
            "/api/internal-review/approve",
            json={
                "workflow_id": workflow_id,
                "stamp": {"label": "OK", "page_number": 1, "x": 10, "y": 10},
            },
            headers=reviewer,
        )
        assert approved.status_code == 200, approved.text
        assert approved.json()["status"] == int(WorkflowStatus.PENDING_EXTERNAL_REVIEW)

        credential = db_session.query(ExternalAccessCredential).one()
        to_email, _, body = notifier.sent[-1]
        assert to_email == "ext@test.com"
        assert credential.token in body
        passcode = passcode_from(body)

        # Reviewer queue no longer lists it once it leaves internal review
        assert client.get("/api/internal-review/assigned", headers=reviewer).json() == []

        otp = client.post(
            "/api/external-review/validate-otp",
            json={"token": credential.token, "otp": passcode},
        )
        assert otp.json() is True

        view = client.get("/api/external-review/workflow", params={"token": credential.token})
        assert view.json()["status"] == int(WorkflowStatus.PENDING_EXTERNAL_REVIEW)

        final = client.post(
            "/api/external-review/approve",
            json={"token": credential.token, "stamp": {"label": "APPROVED"}},
        )
        assert final.status_code == 200, final.text
        assert final.json()["status"] == int(WorkflowStatus.COMPLETED)

        listed = client.get("/api/external-review/workflows", params={"token": credential.token})
        assert [(w["id"], w["status"]) for w in listed.json()] == [(workflow_id, int(WorkflowStatus.COMPLETED))]

        workflow = db_session.query(Workflow).one()
        db_session.refresh(workflow)
        assert workflow.internal_approved_at is not None
        assert workflow.external_approved_at is not None
        assert db_session.query(WorkflowStamp).count() == 2

        # The approved PDF is frozen
        document = created_workflow["pdf_file_path"]
        status = client.get("/api/documents/status", params={"document": document})
        assert status.json()["read_only"] is True

        save = client.post(
            "/api/documents/save",
            json={"file_name": document, "document": base64.b64encode(b"%PDF-1.4").decode()},
            headers=reviewer,
        )
        assert save.status_code == 403
        assert save.json()["detail"]["error"] == "This PDF has been approved and is read-only."

        again = client.post(
            "/api/internal-review/approve",
            json={"workflow_id": workflow_id},
            headers=reviewer,
        )
        assert again.status_code == 400

    def test_external_approval_before_internal_is_refused(
        self, client, db_session, created_workflow, workflow_factory, credential_factory
    ):
        # A credential for a sibling workflow cannot skip internal review
        sibling = workflow_factory(
            external_reviewer_email="ext@test.com",
            status=WorkflowStatus.PENDING_EXTERNAL_REVIEW,
        )
        credential = credential_factory(workflow=sibling)

        response = client.post(
            "/api/external-review/approve",
            json={"token": credential.token, "workflow_id": created_workflow["id"]},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["current_status"] == int(WorkflowStatus.PENDING_INTERNAL_REVIEW)


class TestReassignment:

    def test_colleague_takes_over(self, client, db_session, seeded, created_workflow):
        colleague = login(client, "internal2@company.com", "Internal123!")

        response = client.post(
            "/api/internal-review/approve",
            json={"workflow_id": created_workflow["id"]},
            headers=colleague,
        )
        assert response.status_code == 200

        workflow = db_session.query(Workflow).one()
        db_session.refresh(workflow)
        assert workflow.internal_reviewer_id == seeded["internal2@company.com"].id

    def test_external_account_cannot_approve_internally(self, client, created_workflow):
        external = login(client, "external@client.com", "External123!")
        response = client.post(
            "/api/internal-review/approve",
            json={"workflow_id": created_workflow["id"]},
            headers=external,
        )
        assert response.status_code == 403


class TestSessionApprovalFlow:

    def test_external_user_approves_from_queue(self, client, seeded):
        admin = login(client, "admin@company.com", "Admin123!")
        created = client.post(
            "/api/workflows",
            data={
                "title": "Statement of work",
                "internal_reviewer_id": str(seeded["internal1@company.com"].id),
                "external_reviewer_email": "EXTERNAL@client.com",
            },
            files={"pdf_file": ("sow.pdf", make_pdf(), "application/pdf")},
            headers=admin,
        ).json()

        reviewer = login(client, "internal1@company.com", "Internal123!")
        client.post("/api/internal-review/approve", json={"workflow_id": created["id"]}, headers=reviewer)

        external = login(client, "external@client.com", "External123!")
        queue = client.get("/api/external-review/workflows/current", headers=external)
        assert [w["id"] for w in queue.json()] == [created["id"]]

        response = client.post(
            "/api/external-review/approve-current",
            json={"workflow_id": created["id"]},
            headers=external,
        )
        assert response.status_code == 200
        assert response.json()["status"] == int(WorkflowStatus.COMPLETED)
