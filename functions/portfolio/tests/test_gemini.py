import unittest
from types import SimpleNamespace
from unittest import mock

import site_fixtures
from fastapi.testclient import TestClient
from google.genai import errors

from models import gemini
from portfolio.app import create_app
from portfolio.dependencies import get_text_generator
from portfolio.errors import GenerationError
from site_fixtures import create_user, log_in


class GenerateTextTests(unittest.TestCase):
    def test_missing_api_key(self):
        with self.assertRaises(GenerationError) as ctx:
            gemini.generate_text("Hello", api_key="")
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(ctx.exception.message, gemini.MISSING_API_KEY_MESSAGE)

    @mock.patch.object(gemini.genai, "Client")
    def test_forwards_sampling_settings(self, client_cls):
        models = client_cls.return_value.models
        models.generate_content.return_value = SimpleNamespace(text="Hi there")

        text = gemini.generate_text(
            "Hello", max_tokens=120, temperature=0.2, model="gemini-test", api_key="k"
        )

        self.assertEqual(text, "Hi there")
        client_cls.assert_called_once_with(api_key="k")
        kwargs = models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-test")
        self.assertEqual(kwargs["contents"], "Hello")
        config = kwargs["config"]
        self.assertEqual(config.max_output_tokens, 120)
        self.assertEqual(config.temperature, 0.2)
        self.assertEqual(config.top_k, 40)
        self.assertEqual(config.top_p, 0.95)

    @mock.patch.object(gemini.genai, "Client")
    def test_empty_candidate_returns_empty_text(self, client_cls):
        client_cls.return_value.models.generate_content.return_value = SimpleNamespace(
            text=None
        )
        self.assertEqual(gemini.generate_text("Hello", api_key="k"), "")

    @mock.patch.object(gemini.genai, "Client")
    def test_api_error_is_mapped(self, client_cls):
        client_cls.return_value.models.generate_content.side_effect = errors.ClientError(
            429, {"error": {"message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
        )
        with self.assertRaises(GenerationError) as ctx:
            gemini.generate_text("Hello", api_key="k")
        self.assertEqual(ctx.exception.status, 429)
        self.assertEqual(ctx.exception.message, "Quota exceeded")


class GenerateEndpointTests(unittest.TestCase):
    def setUp(self):
        self.db, self.auth = site_fixtures.reset_backends()
        self.app = create_app()
        self.client = TestClient(self.app)
        self.calls = []

        def fake_generate(prompt, **kwargs):
            self.calls.append((prompt, kwargs))
            return "Generated"

        self.app.dependency_overrides[get_text_generator] = lambda: fake_generate

    def test_requires_login(self):
        response = self.client.post("/api/generate-with-gemini", json={"prompt": "Hi"})
        self.assertEqual(response.status_code, 401)
        self.assertIn("error", response.json())
        self.assertEqual(self.calls, [])

    def test_generates_text(self):
        create_user(self.auth, self.db)
        log_in(self.client)
        response = self.client.post(
            "/api/generate-with-gemini",
            json={"prompt": "Hi", "maxTokens": 50, "temperature": 0.3},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"generatedText": "Generated"})
        self.assertEqual(self.calls, [("Hi", {"max_tokens": 50, "temperature": 0.3})])

    def test_empty_prompt_is_rejected(self):
        create_user(self.auth, self.db)
        log_in(self.client)
        response = self.client.post("/api/generate-with-gemini", json={"prompt": "  "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Please enter a prompt"})

    def test_generation_error_is_reported(self):
        def failing_generate(prompt, **kwargs):
            raise GenerationError("Gemini API key not configured", status=500)

        self.app.dependency_overrides[get_text_generator] = lambda: failing_generate
        create_user(self.auth, self.db)
        log_in(self.client)
        response = self.client.post("/api/generate-with-gemini", json={"prompt": "Hi"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Gemini API key not configured"})


if __name__ == "__main__":
    unittest.main()
