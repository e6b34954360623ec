import json

import pytest
import requests

from sourcewriter.config import Settings
from sourcewriter.errors import GenerationEndpointError
from sourcewriter.generator import (
    InferenceClient,
    TemplateGenerator,
    get_generator,
    unwrap_envelope,
)
from sourcewriter.interpreter import Structured, interpret
from sourcewriter.schemas import GenerationOptions


@pytest.mark.parametrize(
    "payload, expected",
    [
        ([{"generated_text": "hi"}], "hi"),
        ({"generated_text": "hi"}, "hi"),
        ("hi", "hi"),
        ([{"generated_text": ""}], '[{"generated_text": ""}]'),
        ({"error": "loading"}, '{"error": "loading"}'),
        ([], "[]"),
    ],
)
def test_unwrap_envelope(payload, expected):
    assert unwrap_envelope(payload) == expected


def test_inference_client_posts_prompt_with_bearer_credential(settings, stub_endpoint):
    calls = stub_endpoint(json.dumps([{"generated_text": "done"}]))

    assert InferenceClient(settings).generate("the prompt") == "done"

    assert calls[0]["url"] == "https://inference.test/models/test-org/test-model"
    assert calls[0]["headers"]["Authorization"] == "Bearer test-secret-key"
    assert calls[0]["json"] == {
        "inputs": "the prompt",
        "parameters": {"max_new_tokens": 800, "do_sample": False},
    }


def test_inference_client_returns_non_json_body_as_text(settings, stub_endpoint):
    stub_endpoint("plain words")
    assert InferenceClient(settings).generate("p") == "plain words"


def test_inference_client_error_keeps_body_and_hides_credential(settings, stub_endpoint):
    stub_endpoint('{"error": "Model is overloaded"}', status_code=503)

    with pytest.raises(GenerationEndpointError) as exc_info:
        InferenceClient(settings).generate("p")

    err = exc_info.value
    assert err.status_code == 502
    assert err.details == '{"error": "Model is overloaded"}'
    assert "test-secret-key" not in json.dumps(err.to_payload())


def test_inference_client_network_error(settings, stub_endpoint):
    stub_endpoint("", error=requests.ConnectionError("unreachable"))

    with pytest.raises(GenerationEndpointError):
        InferenceClient(settings).generate("p")


def test_inference_client_without_credential_sends_no_auth_header(stub_endpoint):
    calls = stub_endpoint(json.dumps({"generated_text": "x"}))

    InferenceClient(Settings(hf_api_key=None)).generate("p")

    assert "Authorization" not in calls[0]["headers"]


def test_template_generator_output_is_structured():
    options = GenerationOptions.model_validate({"length": "long", "userGuidance": "Be brief"})

    result = interpret(TemplateGenerator().generate("ignored", options))

    assert isinstance(result, Structured)
    assert result.result.title == "AI-Generated Article"
    assert result.result.subheadings == ["Key Points", "Analysis", "Conclusion"]
    assert '"Be brief"' in result.result.article
    assert "approximately 500 words" in result.result.article


def test_get_generator_selects_backend(settings):
    assert isinstance(get_generator(settings), InferenceClient)
    assert isinstance(get_generator(Settings(generation_backend="mock")), TemplateGenerator)


def test_settings_repr_hides_credential(settings):
    assert "test-secret-key" not in repr(settings)


class _FakeEncoding(dict):
    def to(self, device):
        return self


class _FakeTokenizer:
    def __call__(self, prompt, **kwargs):
        self.prompt = prompt
        return _FakeEncoding(input_ids=[[1, 2, 3]])

    def decode(self, ids, skip_special_tokens=True):
        return '{"title": "Local", "subheadings": [], "article": "From a local model"}'


class _FakeModel:
    def to(self, device):
        return self

    def generate(self, **kwargs):
        self.kwargs = kwargs
        return [[7, 8, 9]]


def test_local_model_generator_uses_length_budget(monkeypatch):
    pytest.importorskip("torch")
    from sourcewriter.generator import LocalModelGenerator

    tokenizer, model = _FakeTokenizer(), _FakeModel()
    monkeypatch.setattr(
        LocalModelGenerator, "_load_tokenizer_and_model", lambda self, path: (tokenizer, model)
    )

    generator = LocalModelGenerator("some/model")
    text = generator.generate("prompt", GenerationOptions(length="short"))

    assert isinstance(interpret(text), Structured)
    assert tokenizer.prompt == "prompt"
    assert model.kwargs["do_sample"] is False
    assert model.kwargs["max_new_tokens"] == 300


def _local_loader_modules():
    pytest.importorskip("torch")
    transformers = pytest.importorskip("transformers")
    peft = pytest.importorskip("peft")
    from sourcewriter.generator import LocalModelGenerator

    # Skip __init__ so only the loading logic runs.
    return transformers, peft, LocalModelGenerator.__new__(LocalModelGenerator)


def test_local_loader_plain_model_id(monkeypatch):
    transformers, _, generator = _local_loader_modules()
    loaded = []
    monkeypatch.setattr(
        transformers.AutoTokenizer, "from_pretrained", lambda name, **kw: ("tok", name)
    )
    monkeypatch.setattr(
        transformers.AutoModelForSeq2SeqLM,
        "from_pretrained",
        lambda name, **kw: loaded.append(name) or ("model", name),
    )

    tokenizer, model = generator._load_tokenizer_and_model("org/hub-model")

    assert tokenizer == ("tok", "org/hub-model")
    assert model == ("model", "org/hub-model")
    assert loaded == ["org/hub-model"]


def test_local_loader_adapter_directory(monkeypatch, tmp_path):
    transformers, peft, generator = _local_loader_modules()
    (tmp_path / "adapter_config.json").write_text("{}", encoding="utf-8")

    class _AdapterConfig:
        base_model_name_or_path = "org/base-model"

    monkeypatch.setattr(peft.PeftConfig, "from_pretrained", lambda path, **kw: _AdapterConfig())
    monkeypatch.setattr(
        transformers.AutoModelForSeq2SeqLM, "from_pretrained", lambda name, **kw: ("base", name)
    )
    monkeypatch.setattr(
        peft.PeftModel, "from_pretrained", lambda base, path, **kw: ("adapted", base, path)
    )
    monkeypatch.setattr(
        transformers.AutoTokenizer, "from_pretrained", lambda name, **kw: ("tok", name)
    )

    tokenizer, model = generator._load_tokenizer_and_model(str(tmp_path))

    assert model == ("adapted", ("base", "org/base-model"), str(tmp_path))
    assert tokenizer == ("tok", str(tmp_path))


def test_local_loader_adapter_without_base_model(monkeypatch, tmp_path):
    _, peft, generator = _local_loader_modules()
    (tmp_path / "adapter_config.json").write_text("{}", encoding="utf-8")

    class _AdapterConfig:
        base_model_name_or_path = None

    monkeypatch.setattr(peft.PeftConfig, "from_pretrained", lambda path, **kw: _AdapterConfig())

    with pytest.raises(ValueError, match="base_model_name_or_path"):
        generator._load_tokenizer_and_model(str(tmp_path))
