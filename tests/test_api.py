"""HTTP API tests through the ASGI client."""

import httpx
import pytest

from dealer_studio.services.image_generation import GETIMG_MODEL_LABEL

API = "/api/v1"


async def create_dealer(async_client, **overrides):
    body = {
        "name": "Sophia",
        "personality": "Elegant & Sophisticated",
        "model": GETIMG_MODEL_LABEL,
        **overrides,
    }
    response = await async_client.post(f"{API}/dealers", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_dealer_returns_camel_case(async_client):
    dealer = await create_dealer(async_client, customPrompt="freckles")

    assert dealer["name"] == "Sophia"
    assert dealer["isActive"] is True
    assert dealer["isPremium"] is False
    assert dealer["customPrompt"] == "freckles"
    assert dealer["outfits"] == []
    assert "createdAt" in dealer and "updatedAt" in dealer


async def test_create_draft_dealer(async_client):
    response = await async_client.post(
        f"{API}/dealers",
        params={"draft": "true"},
        json={"name": "Mia", "personality": "Bold", "model": "DALL·E 3"},
    )

    assert response.status_code == 201
    assert response.json()["id"].startswith("new-")


async def test_create_dealer_missing_field(async_client):
    response = await async_client.post(f"{API}/dealers", json={"name": "Sophia"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert body["details"]


async def test_list_get_update_delete(async_client):
    first = await create_dealer(async_client)
    second = await create_dealer(async_client, name="Isabella")

    listed = (await async_client.get(f"{API}/dealers")).json()
    assert [d["id"] for d in listed] == [first["id"], second["id"]]

    response = await async_client.patch(
        f"{API}/dealers/{first['id']}", json={"personality": "Warm & Friendly"}
    )
    assert response.status_code == 200
    assert response.json()["personality"] == "Warm & Friendly"
    assert response.json()["name"] == "Sophia"

    fetched = await async_client.get(f"{API}/dealers/{first['id']}")
    assert fetched.json()["personality"] == "Warm & Friendly"

    deleted = await async_client.delete(f"{API}/dealers/{first['id']}")
    assert deleted.json() == {"deleted": True}
    again = await async_client.delete(f"{API}/dealers/{first['id']}")
    assert again.status_code == 200
    assert again.json() == {"deleted": False}


async def test_unknown_dealer_is_404(async_client):
    response = await async_client.get(f"{API}/dealers/missing")

    assert response.status_code == 404
    assert response.json() == {
        "error": "Dealer missing not found",
        "details": {"dealer_id": "missing"},
    }


async def test_generate_stage_and_approve(async_client, provider):
    dealer = await create_dealer(async_client)
    provider.reply(json_body={"output_url": "https://images.test/stage1.png"})

    response = await async_client.post(f"{API}/dealers/{dealer['id']}/stages/1/generate")

    assert response.status_code == 200, response.text
    outfit = response.json()
    assert outfit["stage"] == 1
    assert outfit["name"] == "Casino Uniform"
    assert outfit["imageUrl"] == "https://images.test/stage1.png"
    assert outfit["approved"] is False
    assert "Casino Uniform" in provider.body()["prompt"]

    approve = await async_client.post(
        f"{API}/dealers/{dealer['id']}/outfits/{outfit['id']}/approve"
    )
    assert approve.json() == {"approved": True}
    unknown = await async_client.post(f"{API}/dealers/{dealer['id']}/outfits/nope/approve")
    assert unknown.json() == {"approved": False}

    stored = (await async_client.get(f"{API}/dealers/{dealer['id']}")).json()
    assert stored["outfits"][0]["approved"] is True
    generating = await async_client.get(f"{API}/dealers/{dealer['id']}/generating")
    assert generating.json() == []


@pytest.mark.parametrize("stage", [0, 6])
async def test_generate_unknown_stage_is_400(async_client, provider, stage):
    dealer = await create_dealer(async_client)

    response = await async_client.post(f"{API}/dealers/{dealer['id']}/stages/{stage}/generate")

    assert response.status_code == 400
    assert response.json()["details"] == {"stage": stage}
    assert provider.call_count == 0


async def test_provider_failure_is_502(async_client, provider):
    dealer = await create_dealer(async_client)
    provider.reply(status_code=500, text="upstream exploded")

    response = await async_client.post(f"{API}/dealers/{dealer['id']}/stages/2/generate")

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "GetImg.ai API error: 500 upstream exploded"
    assert body["details"]["status"] == 500
    stored = (await async_client.get(f"{API}/dealers/{dealer['id']}")).json()
    assert stored["outfits"] == []


async def test_generation_in_progress_is_409(async_client, lifecycle):
    dealer = await create_dealer(async_client)
    lifecycle._in_flight.add((dealer["id"], 3))

    response = await async_client.post(f"{API}/dealers/{dealer['id']}/stages/3/generate")

    assert response.status_code == 409
    assert response.json()["details"] == {"dealer_id": dealer["id"], "stage": 3}
    generating = await async_client.get(f"{API}/dealers/{dealer['id']}/generating")
    assert generating.json() == [3]


async def test_toggle_flags(async_client):
    dealer = await create_dealer(async_client)

    active = await async_client.put(f"{API}/dealers/{dealer['id']}/active", json={"value": False})
    premium = await async_client.put(f"{API}/dealers/{dealer['id']}/premium", json={"value": True})

    assert active.json()["isActive"] is False
    assert premium.json()["isPremium"] is True
    assert premium.json()["isActive"] is False


async def test_images_generate(async_client, provider):
    provider.reply(json_body={"data": [{"url": "https://images.test/d.png"}]})

    response = await async_client.post(
        f"{API}/images/generate",
        json={"prompt": "a dealer", "model": "DALL·E 3"},
    )

    assert response.status_code == 200
    assert response.json() == {"imageUrl": "https://images.test/d.png"}


async def test_images_generate_empty_prompt(async_client, provider):
    response = await async_client.post(
        f"{API}/images/generate",
        json={"prompt": "", "model": "DALL·E 3"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Prompt is required"
    assert provider.call_count == 0


async def test_images_generate_missing_credential(async_client, settings, provider):
    settings.OPENAI_API_KEY = None

    response = await async_client.post(
        f"{API}/images/generate",
        json={"prompt": "a dealer", "model": "Stable Diffusion XL"},
    )

    assert response.status_code == 500
    assert response.json()["error"] == "OpenAI API key not configured"
    assert provider.call_count == 0


async def test_images_generate_invalid_url(async_client, provider):
    provider.reply(json_body={"output_url": "/relative.png"})

    response = await async_client.post(
        f"{API}/images/generate",
        json={"prompt": "a dealer", "model": GETIMG_MODEL_LABEL},
    )

    assert response.status_code == 502
    assert response.json() == {
        "error": "Generated image URL is invalid",
        "details": {"url": "/relative.png"},
    }


async def test_cors_preflight(async_client):
    response = await async_client.options(
        f"{API}/images/generate",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


async def test_list_stages(async_client):
    response = await async_client.get(f"{API}/stages")

    assert response.json() == [
        {"stage": 1, "name": "Casino Uniform"},
        {"stage": 2, "name": "Relaxed Attire"},
        {"stage": 3, "name": "Casual/Formal"},
        {"stage": 4, "name": "Cocktail Attire"},
        {"stage": 5, "name": "Swimsuit/Lingerie"},
    ]


async def test_health(async_client):
    response = await async_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["services"] == {"database": "connected"}


async def test_correlation_id_echoed(async_client):
    response = await async_client.get("/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Correlation-ID"] == "abc-123"


async def test_unexpected_error_hides_internal_text(app, lifecycle, mocker):
    mocker.patch.object(
        lifecycle, "list_dealers",
        side_effect=RuntimeError("connection to db-primary:5432 refused for user admin")
    )
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get(f"{API}/dealers")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "details": None}
    assert "db-primary" not in response.text
