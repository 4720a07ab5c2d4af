# ------------------------------------------------------------------------
# File: test_routes_access.py
# Location: tests/test_routes_access.py
# Description:
#     Link-based access flow: viewing a contract by token, signing it once,
#     previewing and downloading the rendered PDF.
# ------------------------------------------------------------------------

import io
from datetime import datetime, timedelta, timezone

from pypdf import PdfReader

from kontrak.api import routes_access
from kontrak.db.models import Contract, ContractHistory, ContractStatus, utcnow
from kontrak.db.session import get_session


def pdf_text(data):
    return "\n".join(page.extract_text() for page in PdfReader(io.BytesIO(data)).pages)


def test_view_contract_renders_content(client, make_contract):
    created = make_contract(variables={"PAYMENT_TERMS": "14"})
    response = client.get(f"/api/contracts/access/{created['token']}")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["number"] == created["number"]
    assert data["status"] == "sent"
    assert "Herman Zaldivar" in data["content"]
    assert "dalam waktu **14** hari" in data["content"]
    assert "{{CONTRACT_NUMBER}}" not in data["content"]
    assert data["user"]["trading_account"] == "TRD001"
    assert "PAYMENT_TERMS" in data["template"]["variables"]
    assert "signature_data" not in data


def test_short_token_rejected(client):
    response = client.get("/api/contracts/access/short")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid access token"}


def test_unknown_token_not_found(client):
    response = client.get(f"/api/contracts/access/{'0' * 64}")
    assert response.status_code == 404


def test_expired_contract_returns_410_and_is_marked(app, client, make_contract):
    created = make_contract(expiry_date=datetime.now(timezone.utc) - timedelta(minutes=5))
    response = client.get(f"/api/contracts/access/{created['token']}")

    assert response.status_code == 410
    assert response.get_json() == {"error": "Contract has expired"}
    with app.app_context():
        assert get_session().get(Contract, created["id"]).status == ContractStatus.expired


def test_sign_contract(app, client, make_contract, signature_data_uri):
    created = make_contract(variables={"LATE_FEE": "Rp5.000"})
    response = client.post(
        f"/api/contracts/access/{created['token']}/sign",
        json={"signatureData": signature_data_uri, "variables": {"PAYMENT_TERMS": "30"}},
        headers={"User-Agent": "pytest-agent"},
    )

    assert response.status_code == 200, response.get_json()
    body = response.get_json()
    assert body["message"] == "Contract signed successfully"
    assert body["pdfDownloadUrl"] == f"/api/contracts/download/{created['id']}"

    with app.app_context():
        session = get_session()
        contract = session.get(Contract, created["id"])
        assert contract.status == ContractStatus.signed
        assert contract.signature_data == signature_data_uri
        assert contract.signed_at is not None
        assert contract.variables == {"LATE_FEE": "Rp5.000", "PAYMENT_TERMS": "30"}
        history = session.query(ContractHistory).filter_by(contract_id=contract.id, action="signed").one()
        assert history.user_agent == "pytest-agent"


def test_sign_twice_is_rejected(client, make_contract, signature_data_uri):
    created = make_contract()
    url = f"/api/contracts/access/{created['token']}/sign"
    assert client.post(url, json={"signatureData": signature_data_uri}).status_code == 200

    response = client.post(url, json={"signatureData": signature_data_uri})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Contract already signed"}


def test_signature_committed_during_rendering_wins(app, client, make_contract, signature_data_uri, monkeypatch):
    created = make_contract()
    competing_signature = "data:image/png;base64,b3RoZXItZGV2aWNl"
    render = routes_access.generate_contract_pdf

    async def render_while_another_device_signs(document):
        session = get_session()
        session.query(Contract).filter_by(id=created["id"]).update({
            Contract.status: ContractStatus.signed,
            Contract.signature_data: competing_signature,
            Contract.signed_at: utcnow(),
        }, synchronize_session=False)
        session.commit()
        return await render(document)

    monkeypatch.setattr(routes_access, "generate_contract_pdf", render_while_another_device_signs)
    response = client.post(
        f"/api/contracts/access/{created['token']}/sign", json={"signatureData": signature_data_uri}
    )

    assert response.status_code == 400
    assert response.get_json() == {"error": "Contract already signed"}
    with app.app_context():
        session = get_session()
        contract = session.get(Contract, created["id"])
        assert contract.status == ContractStatus.signed
        assert contract.signature_data == competing_signature
        assert session.query(ContractHistory).filter_by(contract_id=contract.id, action="signed").count() == 0


def test_sign_requires_signature(client, make_contract):
    created = make_contract()
    url = f"/api/contracts/access/{created['token']}/sign"

    assert client.post(url, json={}).get_json() == {"error": "Signature data required"}
    response = client.post(url, json={"signatureData": "not-a-data-uri"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid signature format"}


def test_sign_rejects_undecodable_image(client, make_contract):
    created = make_contract()
    response = client.post(
        f"/api/contracts/access/{created['token']}/sign",
        json={"signatureData": "data:image/png;base64,bm90LWFuLWltYWdl"},
    )
    assert response.status_code == 400


def test_draft_contract_cannot_be_signed(client, make_contract, signature_data_uri):
    created = make_contract(status=ContractStatus.draft)
    response = client.post(
        f"/api/contracts/access/{created['token']}/sign", json={"signatureData": signature_data_uri}
    )
    assert response.status_code == 400
    assert response.get_json() == {"error": "Contract is not ready for signing"}


def test_expired_contract_cannot_be_signed(client, make_contract, signature_data_uri):
    created = make_contract(expiry_date=datetime.now(timezone.utc) - timedelta(days=1))
    response = client.post(
        f"/api/contracts/access/{created['token']}/sign", json={"signatureData": signature_data_uri}
    )
    assert response.status_code == 410


def test_sign_unknown_contract(client, signature_data_uri):
    response = client.post(f"/api/contracts/access/{'f' * 64}/sign", json={"signatureData": signature_data_uri})
    assert response.status_code == 404


def test_preview_unsigned_contract(client, make_contract):
    created = make_contract(content="# Perjanjian\nPihak A: {{USER_NAME}}")
    response = client.get(f"/api/contracts/access/{created['token']}/preview")

    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    text = pdf_text(response.data)
    assert "Pihak A: Herman Zaldivar" in text
    assert "TANDA TANGAN DIGITAL" in text
    assert "Ditandatangani oleh" not in text


def test_download_signed_contract(client, make_contract, signature_data_uri):
    created = make_contract(content="# Perjanjian\nNilai: **{{AMOUNT}}**")
    client.post(f"/api/contracts/access/{created['token']}/sign", json={"signatureData": signature_data_uri})

    response = client.get(f"/api/contracts/download/{created['id']}")
    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert f"Kontrak_{created['number']}.pdf" in response.headers["Content-Disposition"]
    text = pdf_text(response.data)
    assert "Nilai: Rp50.000.000" in text
    assert "Ditandatangani oleh: Herman Zaldivar" in text


def test_download_unsigned_contract_rejected(client, make_contract):
    created = make_contract()
    response = client.get(f"/api/contracts/download/{created['id']}")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Contract is not signed yet"}


def test_download_invalid_id(client):
    assert client.get("/api/contracts/download/not-an-id").status_code == 400
