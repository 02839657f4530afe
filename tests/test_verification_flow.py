from datetime import date, datetime, timedelta, timezone
import pytest
from beanie.exceptions import RevisionIdWasChanged
from coding_jojo_app.core.exceptions import ConcurrentModification
from coding_jojo_app.verification.models.verification_models import Certificate, StoredFile, VerificationRecord
from coding_jojo_app.verification.utils.record_ops import apply_mutation
from coding_jojo_app.verification.utils.verification_enums import CertificateType, RecordStatus
from conftest import PDF_BYTES, PNG_BYTES

BASE = "/api/v1/teacher/verification"


async def initialize(client, headers):
    return await client.post(f"{BASE}/initialize", json={"phone_number": "677123456"}, headers=headers)


async def verify_channel(client, headers, outbox, channel):
    response = await client.post(f"{BASE}/{channel}/send-code", headers=headers)
    assert response.status_code == 200, response.text
    response = await client.post(f"{BASE}/{channel}/verify", json={"code": outbox.last_code()}, headers=headers)
    assert response.status_code == 200, response.text
    return response


async def upload_certificate(client, headers, certificate_type="bachelors_degree", graduation_year="2019"):
    return await client.post(
        f"{BASE}/education-certificate",
        data={
            "certificate_type": certificate_type,
            "institution_name": "University of Buea",
            "field_of_study": "Computer Science",
            "graduation_year": graduation_year,
        },
        files={"certificate_document": ("degree.pdf", PDF_BYTES, "application/pdf")},
        headers=headers,
    )


async def complete_all_steps(client, headers, outbox):
    await verify_channel(client, headers, outbox, "email")
    await verify_channel(client, headers, outbox, "phone")

    response = await client.post(
        f"{BASE}/personal-info",
        json={"first_name": "Jojo", "last_name": "Dev", "date_of_birth": "1994-03-12", "gender": "male"},
        headers=headers,
    )
    assert response.status_code == 200, response.text

    response = await client.post(
        f"{BASE}/id-documents",
        data={"document_type": "passport"},
        files={"front_image": ("front.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert response.status_code == 200, response.text

    response = await client.post(
        f"{BASE}/selfie",
        files={"selfie": ("me.jpg", PNG_BYTES, "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 200, response.text

    response = await upload_certificate(client, headers)
    assert response.status_code == 201, response.text
    return response


async def load_record(user) -> VerificationRecord:
    return await VerificationRecord.find_one(VerificationRecord.instructor == user.id)


async def test_requests_without_token_are_rejected(client):
    response = await client.get(f"{BASE}/status")
    assert response.status_code == 401
    assert response.json()["error"] == "unauthenticated"


async def test_status_before_initialize(client, applicant_headers):
    response = await client.get(f"{BASE}/status", headers=applicant_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_initialized"


async def test_initialize_is_idempotent(client, applicant, applicant_headers):
    first = await initialize(client, applicant_headers)
    second = await initialize(client, applicant_headers)

    assert first.status_code == 201
    assert first.json()["already_initialized"] is False
    assert second.status_code == 200
    assert second.json()["already_initialized"] is True
    assert first.json()["data"]["id"] == second.json()["data"]["id"]
    assert await VerificationRecord.find(VerificationRecord.instructor == applicant.id).count() == 1

    data = second.json()["data"]
    assert data["verification_status"] == "pending"
    assert data["progress_percentage"] == 0
    assert data["total_steps"] == 6
    assert set(data["completed_steps"]) == {
        "email", "phone", "personal_info", "id_document", "selfie", "education_certificate"
    }


async def test_initialize_validates_phone(client, applicant_headers):
    response = await client.post(f"{BASE}/initialize", json={"phone_number": "abc"}, headers=applicant_headers)
    assert response.status_code == 422
    assert response.json()["field"] == "phone_number"


async def test_email_verification(client, applicant, applicant_headers, outbox):
    await initialize(client, applicant_headers)
    response = await verify_channel(client, applicant_headers, outbox, "email")

    assert outbox.codes[0][0] == applicant.email
    assert response.json()["data"]["completed_steps"]["email"] is True
    assert response.json()["data"]["progress_percentage"] == 17

    record = await load_record(applicant)
    assert record.verification_status == RecordStatus.IN_PROGRESS
    assert record.email_verification.code_hash is None

    again = await client.post(f"{BASE}/email/send-code", headers=applicant_headers)
    assert again.status_code == 400
    assert again.json()["error"] == "already_verified"


async def test_wrong_code_attempts_are_persisted(client, applicant, applicant_headers, outbox):
    await initialize(client, applicant_headers)
    await client.post(f"{BASE}/email/send-code", headers=applicant_headers)
    wrong = "000000" if outbox.last_code() != "000000" else "111111"

    for _ in range(3):
        response = await client.post(f"{BASE}/email/verify", json={"code": wrong}, headers=applicant_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "code_rejected"

    record = await load_record(applicant)
    assert record.email_verification.attempts == 3
    assert record.step_states.email == "not_started"

    response = await client.post(f"{BASE}/email/verify", json={"code": outbox.last_code()}, headers=applicant_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Maximum verification attempts exceeded"


async def test_resend_inside_cooldown_is_rate_limited(client, applicant_headers):
    await initialize(client, applicant_headers)
    first = await client.post(f"{BASE}/phone/send-code", headers=applicant_headers)
    second = await client.post(f"{BASE}/phone/send-code", headers=applicant_headers)

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.json()["error"] == "rate_limited"
    assert int(second.headers["Retry-After"]) > 0


async def test_phone_code_goes_to_the_full_number(client, applicant_headers, outbox):
    await initialize(client, applicant_headers)
    await verify_channel(client, applicant_headers, outbox, "phone")
    assert outbox.sms[0][0] == "+237677123456"


async def test_personal_info_requires_a_past_birth_date(client, applicant_headers):
    await initialize(client, applicant_headers)
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    response = await client.post(
        f"{BASE}/personal-info",
        json={"first_name": "Jojo", "last_name": "Dev", "date_of_birth": tomorrow},
        headers=applicant_headers,
    )
    assert response.status_code == 422
    assert response.json()["field"] == "date_of_birth"


async def test_selfie_must_be_an_image(client, applicant_headers):
    await initialize(client, applicant_headers)
    response = await client.post(
        f"{BASE}/selfie",
        files={"selfie": ("notes.txt", b"hello", "text/plain")},
        headers=applicant_headers,
    )
    assert response.status_code == 422
    assert response.json()["field"] == "selfie"


async def test_upload_size_limit(client, applicant_headers, settings, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 16)
    await initialize(client, applicant_headers)
    response = await client.post(
        f"{BASE}/selfie",
        files={"selfie": ("me.png", PNG_BYTES, "image/png")},
        headers=applicant_headers,
    )
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


async def test_non_qualifying_certificate_leaves_education_incomplete(client, applicant_headers):
    await initialize(client, applicant_headers)
    response = await upload_certificate(client, applicant_headers, certificate_type="online_course_certificate")

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["minimum_requirement_met"] is False
    assert data["completed_steps"]["education_certificate"] is False

    listing = await client.get(f"{BASE}/education-certificates", headers=applicant_headers)
    assert listing.json()["data"]["requirement_message"] is not None


async def test_update_and_remove_certificate(client, applicant, applicant_headers):
    await initialize(client, applicant_headers)
    uploaded = await upload_certificate(client, applicant_headers)
    certificate_id = uploaded.json()["data"]["certificate"]["id"]
    assert uploaded.json()["data"]["completed_steps"]["education_certificate"] is True

    updated = await client.put(
        f"{BASE}/education-certificate/{certificate_id}",
        json={"institution_name": "ICT University", "gpa": 3.6},
        headers=applicant_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["certificate"]["institution_name"] == "ICT University"
    assert updated.json()["data"]["certificate"]["verification_status"] == "pending"

    removed = await client.delete(f"{BASE}/education-certificate/{certificate_id}", headers=applicant_headers)
    assert removed.status_code == 200
    assert removed.json()["data"]["minimum_requirement_met"] is False
    assert removed.json()["data"]["completed_steps"]["education_certificate"] is False

    record = await load_record(applicant)
    assert record.education_verification.certificates == []

    missing = await client.delete(f"{BASE}/education-certificate/{certificate_id}", headers=applicant_headers)
    assert missing.status_code == 404


async def test_future_graduation_year_is_rejected(client, applicant, applicant_headers):
    await initialize(client, applicant_headers)
    next_year = datetime.now(timezone.utc).year + 1

    response = await upload_certificate(client, applicant_headers, graduation_year=str(next_year))
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"
    assert response.json()["field"] == "graduation_year"

    record = await load_record(applicant)
    assert record.education_verification.certificates == []

    uploaded = await upload_certificate(client, applicant_headers)
    certificate_id = uploaded.json()["data"]["certificate"]["id"]
    updated = await client.put(
        f"{BASE}/education-certificate/{certificate_id}",
        json={"graduation_year": next_year},
        headers=applicant_headers,
    )
    assert updated.status_code == 422
    assert updated.json()["field"] == "graduation_year"


async def test_professional_info_is_stored_but_not_a_step(client, applicant, applicant_headers):
    await initialize(client, applicant_headers)
    payload = {
        "expertise": ["Python", " python ", "Python", "", "FastAPI"],
        "experience_years": 6,
        "education": [{"degree": "BSc Computer Science", "institution": "University of Buea", "graduation_year": 2016}],
        "certifications": [{"name": "AWS Developer", "issuer": "Amazon", "issue_date": "2022-05-01T00:00:00Z"}],
        "portfolio": {
            "github": "https://github.com/jojo",
            "projects": [{"title": "Course engine", "technologies": ["FastAPI", "MongoDB"]}],
        },
    }

    response = await client.post(f"{BASE}/professional-info", json=payload, headers=applicant_headers)
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["professional_info"]["expertise"] == ["Python", "python", "FastAPI"]
    assert data["completed_count"] == 0
    assert data["total_steps"] == 6
    assert "professional_info" not in data["completed_steps"]

    status_response = await client.get(f"{BASE}/status", headers=applicant_headers)
    info = status_response.json()["data"]["professional_info"]
    assert info["experience_years"] == 6
    assert info["portfolio"]["projects"][0]["title"] == "Course engine"

    record = await load_record(applicant)
    assert record.history[-1].step == "professional_info"
    assert record.history[-1].details["certification_count"] == 1
    assert record.verification_status == RecordStatus.PENDING


async def test_professional_info_validates_experience(client, applicant_headers):
    await initialize(client, applicant_headers)
    response = await client.post(f"{BASE}/professional-info", json={"experience_years": -1}, headers=applicant_headers)
    assert response.status_code == 422


async def test_submit_lists_missing_steps(client, applicant_headers, outbox):
    await initialize(client, applicant_headers)
    await verify_channel(client, applicant_headers, outbox, "email")

    response = await client.post(f"{BASE}/submit", headers=applicant_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "incomplete_steps"
    assert body["missing_steps"] == ["phone", "personal_info", "id_document", "selfie", "education_certificate"]


async def test_full_verification_and_submission(client, applicant, applicant_headers, outbox, settings):
    await initialize(client, applicant_headers)
    await complete_all_steps(client, applicant_headers, outbox)

    status_response = await client.get(f"{BASE}/status", headers=applicant_headers)
    data = status_response.json()["data"]
    assert data["progress_percentage"] == 100
    assert data["completed_count"] == 6
    assert all(data["completed_steps"].values())
    assert data["education_verification"]["minimum_requirement_met"] is True

    submitted = await client.post(f"{BASE}/submit", headers=applicant_headers)
    assert submitted.status_code == 200
    assert submitted.json()["data"]["verification_status"] == "under_review"
    assert (settings.ADMIN_EMAIL, f"New Instructor Verification - {applicant.name}") in outbox.notifications

    record = await load_record(applicant)
    assert record.submitted_at is not None

    locked = await client.post(
        f"{BASE}/selfie",
        files={"selfie": ("me.png", PNG_BYTES, "image/png")},
        headers=applicant_headers,
    )
    assert locked.status_code == 409
    assert locked.json()["error"] == "record_locked"


async def test_reset_limits_only_in_debug(client, applicant_headers, settings, monkeypatch):
    await initialize(client, applicant_headers)
    response = await client.post(f"{BASE}/reset-limits", headers=applicant_headers)
    assert response.status_code == 403

    monkeypatch.setattr(settings, "DEBUG", True)
    await client.post(f"{BASE}/phone/send-code", headers=applicant_headers)
    response = await client.post(f"{BASE}/reset-limits", headers=applicant_headers)
    assert response.status_code == 200
    again = await client.post(f"{BASE}/phone/send-code", headers=applicant_headers)
    assert again.status_code == 200


def _certificate(name: str) -> Certificate:
    return Certificate(
        certificate_type=CertificateType.BACHELORS_DEGREE,
        institution_name=name,
        field_of_study="Mathematics",
        graduation_year=2015,
        document=StoredFile(url=f"/uploads/{name}.pdf", path=f"{name}.pdf", size=1, content_type="application/pdf"),
    )


async def test_concurrent_certificate_appends_are_both_kept(client, applicant, applicant_headers):
    await initialize(client, applicant_headers)
    first_copy = await load_record(applicant)
    second_copy = await load_record(applicant)
    first, second = _certificate("first"), _certificate("second")

    await apply_mutation(first_copy, lambda rec: rec.education_verification.certificates.append(first))
    await apply_mutation(second_copy, lambda rec: rec.education_verification.certificates.append(second))

    record = await load_record(applicant)
    assert {cert.id for cert in record.education_verification.certificates} == {first.id, second.id}
    assert record.education_verification.minimum_requirement_met is True
    assert record.completed_steps["education_certificate"] is True


async def test_conflicts_give_up_after_the_retry_limit(client, applicant, applicant_headers, monkeypatch):
    await initialize(client, applicant_headers)
    record = await load_record(applicant)

    async def always_conflicts(self, *args, **kwargs):
        raise RevisionIdWasChanged

    monkeypatch.setattr(VerificationRecord, "save", always_conflicts)
    with pytest.raises(ConcurrentModification):
        await apply_mutation(record, lambda rec: rec.add_history("test", "noop", "success"))
