import itertools
from datetime import date, timedelta

import pytest

from portal.core.errors import ConflictError, NotFoundError, ValidationError
from portal.database.models import Notification, Payment, ServiceApplication
from portal.schemas.service_application_schema import (
    ApplicationStatusEnum,
    PaymentStatusEnum,
    ServiceApplicationCreate,
)
from portal.services.application_service import ApplicationService
from portal.services.status_reconciler import StatusReconciler


def _service(ids=None):
    if ids is None:
        return ApplicationService(reconciler=StatusReconciler())
    iterator = iter(ids)
    return ApplicationService(reconciler=StatusReconciler(), id_factory=lambda: next(iterator))


@pytest.mark.asyncio
async def test_submit_business_permit_without_date_of_birth(db, business_permit_intake):
    result = await _service().submit(ServiceApplicationCreate(**business_permit_intake))

    stored = await ServiceApplication.find_one(ServiceApplication.application_id == result["applicationId"])
    assert stored is not None
    assert stored.status == ApplicationStatusEnum.pending_payment
    assert stored.date_of_birth is None
    assert stored.payment_id is None
    assert await Notification.find_all().count() == 0


@pytest.mark.asyncio
async def test_submit_birth_certificate_keeps_date_of_birth(db, birth_certificate_intake):
    birth_certificate_intake["documents"] = [{"name": "id.pdf", "size": 2048, "type": "application/pdf"}]
    result = await _service().submit(ServiceApplicationCreate(**birth_certificate_intake))

    stored = result["application"]
    assert stored.date_of_birth == "1990-05-17"
    assert stored.documents[0].name == "id.pdf"


@pytest.mark.asyncio
async def test_submit_rejects_future_date_of_birth(db, birth_certificate_intake):
    birth_certificate_intake["dateOfBirth"] = (date.today() + timedelta(days=365)).isoformat()
    with pytest.raises(ValidationError):
        await _service().submit(ServiceApplicationCreate(**birth_certificate_intake))
    assert await ServiceApplication.find_all().count() == 0


@pytest.mark.asyncio
async def test_submit_rejects_missing_date_of_birth_for_local_origin(db, business_permit_intake):
    business_permit_intake["serviceType"] = "local-origin"
    with pytest.raises(ValidationError) as exc:
        await _service().submit(ServiceApplicationCreate(**business_permit_intake))
    assert exc.value.field == "dateOfBirth"


@pytest.mark.asyncio
async def test_numeric_ward_number_is_accepted(db, business_permit_intake):
    business_permit_intake["wardNumber"] = 3
    result = await _service().submit(ServiceApplicationCreate(**business_permit_intake))
    assert result["application"].ward_number == "3"


@pytest.mark.asyncio
async def test_id_collision_is_retried_once(db, business_permit_intake):
    service = _service(ids=["UGW-1-AAAAA", "UGW-1-AAAAA", "UGW-1-BBBBB"])
    first = await service.submit(ServiceApplicationCreate(**business_permit_intake))
    second = await service.submit(ServiceApplicationCreate(**business_permit_intake))

    assert first["applicationId"] == "UGW-1-AAAAA"
    assert second["applicationId"] == "UGW-1-BBBBB"


@pytest.mark.asyncio
async def test_second_collision_raises_conflict(db, business_permit_intake):
    service = _service(ids=itertools.repeat("UGW-1-AAAAA"))
    await service.submit(ServiceApplicationCreate(**business_permit_intake))
    with pytest.raises(ConflictError):
        await service.submit(ServiceApplicationCreate(**business_permit_intake))
    assert await ServiceApplication.find_all().count() == 1


@pytest.mark.asyncio
async def test_get_unknown_application(db):
    with pytest.raises(NotFoundError):
        await _service().get("UGW-NOPE-00000")


@pytest.mark.asyncio
async def test_status_is_derived_from_latest_payment(db, business_permit_intake):
    service = _service()
    result = await service.submit(ServiceApplicationCreate(**business_permit_intake))

    # Payment stored but the application update never happened
    await Payment(application_id=result["applicationId"], payment_method="bank-transfer",
                  transaction_id="TXN9", amount=5000).insert()

    summary = await service.status_summary(result["applicationId"])
    assert summary["status"] == ApplicationStatusEnum.payment_pending.value
    assert summary["paymentStatus"] == PaymentStatusEnum.pending_verification.value


@pytest.mark.asyncio
async def test_update_status_follows_graph(db, business_permit_intake):
    service = _service()
    result = await service.submit(ServiceApplicationCreate(**business_permit_intake))
    application = result["application"]
    await service.set_status(application, ApplicationStatusEnum.payment_verified)

    updated = await service.update_status(result["applicationId"], "in_review")
    assert updated.status == ApplicationStatusEnum.in_review

    with pytest.raises(ValidationError):
        await service.update_status(result["applicationId"], "pending_payment")


@pytest.mark.asyncio
async def test_override_bypasses_graph(db, business_permit_intake):
    service = _service()
    result = await service.submit(ServiceApplicationCreate(**business_permit_intake))

    updated = await service.update_status(result["applicationId"], "approved", force=True)
    assert updated.status == ApplicationStatusEnum.approved

    reloaded = await service.get(result["applicationId"])
    assert reloaded.status == ApplicationStatusEnum.approved


@pytest.mark.asyncio
async def test_list_applications_filters_and_searches(db, business_permit_intake):
    service = _service()
    await service.submit(ServiceApplicationCreate(**business_permit_intake))
    other = dict(business_permit_intake, firstName="Chidi", email="chidi@example.com")
    chidi = await service.submit(ServiceApplicationCreate(**other))
    await service.update_status(chidi["applicationId"], "approved", force=True)

    everything = await service.list_applications()
    assert everything["total"] == 2

    approved = await service.list_applications(status="approved")
    assert [a.application_id for a in approved["applications"]] == [chidi["applicationId"]]

    found = await service.list_applications(search="chidi")
    assert found["total"] == 1

    with pytest.raises(ValidationError):
        await service.list_applications(status="unknown")
