"""Tests for brandstudio.core.gemini_service — Gemini API facade.

All tests run against the fake client from ``fakes.py``; no network
access occurs.
"""

from __future__ import annotations

import asyncio
import base64
import threading
from types import SimpleNamespace

import pytest
from fakes import FakeClient, empty_response, image_response, text_response

from brandstudio.core import gemini_service as gemini_module
from brandstudio.core.errors import ModelRefusalError, NoImageGeneratedError
from brandstudio.core.gemini_service import (
    FALLBACK_SUGGESTIONS,
    GeminiService,
    extract_image_data_uri,
    parse_suggestions,
)
from brandstudio.core.models import GenerationMode, SubjectType
from brandstudio.core.prompt_assembly import GenerationRequest


def _parts(call: dict) -> list:
    return call["contents"][0].parts


class TestExtractImageDataUri:
    def test_inline_bytes_become_png_data_uri(self):
        uri = extract_image_data_uri(image_response(b"abc"))
        assert uri.startswith("data:image/png;base64,")
        assert uri == "data:image/png;base64," + base64.b64encode(b"abc").decode()

    def test_inline_string_is_used_as_is(self):
        part = SimpleNamespace(inline_data=SimpleNamespace(data="QUJD"), text=None)
        response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
        assert extract_image_data_uri(response) == "data:image/png;base64,QUJD"

    def test_image_wins_over_text(self):
        text_part = SimpleNamespace(inline_data=None, text="Here you go")
        image_part = image_response(b"img").candidates[0].content.parts[0]
        response = SimpleNamespace(
            candidates=[SimpleNamespace(content=SimpleNamespace(parts=[text_part, image_part]))]
        )
        assert extract_image_data_uri(response).startswith("data:image/png;base64,")

    def test_text_only_is_a_refusal_with_verbatim_text(self):
        refusal = "I can't create images of real people in that scenario."
        with pytest.raises(ModelRefusalError) as excinfo:
            extract_image_data_uri(text_response(refusal))
        assert refusal in str(excinfo.value)
        assert excinfo.value.refusal_text == refusal

    def test_no_candidates(self):
        with pytest.raises(NoImageGeneratedError, match="No image generated"):
            extract_image_data_uri(empty_response())

    def test_candidate_without_parts(self):
        with pytest.raises(NoImageGeneratedError):
            extract_image_data_uri(text_response(None))

    def test_only_first_candidate_is_inspected(self):
        second = image_response().candidates[0]
        response = SimpleNamespace(
            candidates=[SimpleNamespace(content=SimpleNamespace(parts=[])), second]
        )
        with pytest.raises(NoImageGeneratedError):
            extract_image_data_uri(response)


class TestGenerateBrandVisual:
    def _request(self, user, products, mode=GenerationMode.COMBINED, liked=()):
        return GenerationRequest(
            prompt="Rooftop bar at dusk",
            mode=mode,
            user=user,
            products=products,
            liked_prompts=list(liked),
        )

    def test_images_first_text_last(self, test_config, user_profile, watch, sneaker):
        client = FakeClient(image_response())
        service = GeminiService(test_config, client=client)

        url = asyncio.run(service.generate_brand_visual(self._request(user_profile, [watch, sneaker])))

        assert url.startswith("data:image/png;base64,")
        parts = _parts(client.calls[0])
        assert len(parts) == 4
        for part in parts[:3]:
            assert part.inline_data.mime_type == "image/jpeg"
            assert part.inline_data.data.startswith(b"\xff\xd8")
        assert parts[3].text.count("[REF_") == 3
        assert parts[3].inline_data is None

    def test_uses_image_model_and_aspect_ratio(self, test_config, user_profile):
        client = FakeClient(image_response())
        service = GeminiService(test_config, client=client)

        asyncio.run(
            service.generate_brand_visual(
                self._request(user_profile, [], mode=GenerationMode.USER_ONLY)
            )
        )

        call = client.calls[0]
        assert call["model"] == "gemini-2.5-flash-image"
        assert call["config"].image_config.aspect_ratio == "1:1"

    def test_png_reference_is_sent_as_jpeg(self, test_config, sneaker):
        client = FakeClient(image_response())
        service = GeminiService(test_config, client=client)

        asyncio.run(
            service.generate_brand_visual(
                self._request(None, [sneaker], mode=GenerationMode.PRODUCT_ONLY)
            )
        )

        assert _parts(client.calls[0])[0].inline_data.data.startswith(b"\xff\xd8")

    def test_retries_transient_failure(self, test_config, user_profile):
        client = FakeClient(RuntimeError("503 overloaded"), image_response())
        service = GeminiService(test_config, client=client)

        url = asyncio.run(service.generate_brand_visual(self._request(user_profile, [])))

        assert url.startswith("data:image/png;base64,")
        assert len(client.calls) == 2

    def test_refusal_is_retried_then_raised(self, test_config, user_profile):
        client = FakeClient(text_response("Policy violation"))
        service = GeminiService(test_config, client=client)

        with pytest.raises(ModelRefusalError, match="Policy violation"):
            asyncio.run(service.generate_brand_visual(self._request(user_profile, [])))
        assert len(client.calls) == 3

    def test_retry_budget_follows_config(self, test_config, user_profile):
        config = test_config.model_copy(update={"generation_retries": 0})
        client = FakeClient(RuntimeError("boom"))
        service = GeminiService(config, client=client)

        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(service.generate_brand_visual(self._request(user_profile, [])))
        assert len(client.calls) == 1

    def test_reference_conversion_runs_off_the_event_loop(
        self, test_config, user_profile, monkeypatch
    ):
        threads = []
        real_to_jpeg_bytes = gemini_module.to_jpeg_bytes

        def recording_to_jpeg_bytes(value):
            threads.append(threading.get_ident())
            return real_to_jpeg_bytes(value)

        monkeypatch.setattr(gemini_module, "to_jpeg_bytes", recording_to_jpeg_bytes)
        service = GeminiService(test_config, client=FakeClient(image_response()))

        asyncio.run(service.generate_brand_visual(self._request(user_profile, [])))

        assert threads
        assert threading.get_ident() not in threads

    def test_degraded_request_sends_text_only(self, test_config):
        client = FakeClient(image_response())
        service = GeminiService(test_config, client=client)

        asyncio.run(service.generate_brand_visual(self._request(None, [])))

        parts = _parts(client.calls[0])
        assert len(parts) == 1
        assert parts[0].text.startswith("\nTASK:")


class TestAnalyzeImages:
    def test_caps_images_and_appends_instruction(self, test_config, jpeg_b64):
        client = FakeClient(text_response("Oval face"))
        service = GeminiService(test_config, client=client)

        result = asyncio.run(service.analyze_images([jpeg_b64] * 7, SubjectType.PERSON))

        assert result == "Oval face"
        parts = _parts(client.calls[0])
        assert len(parts) == 6
        assert all(p.inline_data is not None for p in parts[:5])
        assert "portrait photographer" in parts[5].text
        assert client.calls[0]["model"] == "gemini-2.5-flash"

    def test_product_instruction(self, test_config, jpeg_b64):
        client = FakeClient(text_response("Steel case"))
        service = GeminiService(test_config, client=client)

        asyncio.run(service.analyze_images([jpeg_b64], SubjectType.PRODUCT))

        assert "3D render" in _parts(client.calls[0])[-1].text

    def test_empty_text_falls_back(self, test_config, jpeg_b64):
        service = GeminiService(test_config, client=FakeClient(text_response(None)))
        assert (
            asyncio.run(service.analyze_images([jpeg_b64], SubjectType.PERSON))
            == "No description generated."
        )

    def test_failure_propagates_without_retry(self, test_config, jpeg_b64):
        client = FakeClient(RuntimeError("quota"))
        service = GeminiService(test_config, client=client)

        with pytest.raises(RuntimeError, match="quota"):
            asyncio.run(service.analyze_images([jpeg_b64], SubjectType.PERSON))
        assert len(client.calls) == 1


class TestRefinePrompt:
    def test_returns_refined_text(self, test_config):
        client = FakeClient(text_response("Golden-hour portrait on a Lisbon tram"))
        service = GeminiService(test_config, client=client)

        result = asyncio.run(service.refine_prompt("tram ride", "Subject: Alex."))

        assert result == "Golden-hour portrait on a Lisbon tram"
        assert '"tram ride"' in client.calls[0]["contents"]
        assert "Context: Subject: Alex." in client.calls[0]["contents"]

    def test_no_context_line_without_context(self, test_config):
        client = FakeClient(text_response("refined"))
        service = GeminiService(test_config, client=client)

        asyncio.run(service.refine_prompt("idea"))

        assert "Context:" not in client.calls[0]["contents"]

    def test_failure_returns_original_idea(self, test_config):
        service = GeminiService(test_config, client=FakeClient(RuntimeError("down")))
        assert asyncio.run(service.refine_prompt("eating lunch on mars")) == "eating lunch on mars"

    def test_empty_answer_returns_original_idea(self, test_config):
        service = GeminiService(test_config, client=FakeClient(text_response(None)))
        assert asyncio.run(service.refine_prompt("idea")) == "idea"


class TestSuggestPrompts:
    def test_parses_json_array(self, test_config):
        client = FakeClient(text_response('["Desert road trip", "Neon arcade", "Snowy cabin"]'))
        service = GeminiService(test_config, client=client)

        result = asyncio.run(service.suggest_prompts("person", "product"))

        assert result == ["Desert road trip", "Neon arcade", "Snowy cabin"]
        assert client.calls[0]["config"].response_mime_type == "application/json"

    def test_truncates_descriptions(self, test_config):
        client = FakeClient(text_response('["a", "b", "c"]'))
        service = GeminiService(test_config, client=client)

        asyncio.run(service.suggest_prompts("u" * 100 + "USERTAIL", "p" * 100 + "PRODTAIL"))

        contents = client.calls[0]["contents"]
        assert "u" * 100 in contents
        assert "USERTAIL" not in contents
        assert "PRODTAIL" not in contents

    @pytest.mark.parametrize(
        "text",
        ['{"ideas": ["a"]}', "not json", "[]", "[1, 2, 3]", '"just a string"', None],
    )
    def test_malformed_output_falls_back(self, test_config, text):
        service = GeminiService(test_config, client=FakeClient(text_response(text)))
        assert asyncio.run(service.suggest_prompts("u", "p")) == list(FALLBACK_SUGGESTIONS)

    def test_failure_falls_back(self, test_config):
        service = GeminiService(test_config, client=FakeClient(RuntimeError("down")))
        assert asyncio.run(service.suggest_prompts("u", "p")) == [
            "Studio shot with dramatic lighting",
            "Lifestyle outdoors in sunlight",
            "Close-up product focus with bokeh",
        ]


class TestParseSuggestions:
    def test_caps_at_three(self):
        assert parse_suggestions('["a", "b", "c", "d"]') == ["a", "b", "c"]

    def test_invalid_returns_none(self):
        assert parse_suggestions("{") is None
