"""Article generation backends.

The default backend posts the prompt to the Hugging Face inference API. A
template backend returns canned article text for offline demos and tests, and
a local backend runs a seq2seq model (or a PEFT adapter) in-process. Every
backend returns the raw generated text; parsing it is left to
`sourcewriter.interpreter`.
"""

from functools import lru_cache
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from sourcewriter.config import Settings
from sourcewriter.errors import GenerationEndpointError
from sourcewriter.schemas import GenerationOptions


logger = logging.getLogger(__name__)

GENERATION_PARAMETERS = {"max_new_tokens": 800, "do_sample": False}


def _is_generated_text_list(payload: Any) -> bool:
    return (
        isinstance(payload, list)
        and len(payload) > 0
        and isinstance(payload[0], dict)
        and isinstance(payload[0].get("generated_text"), str)
        and bool(payload[0]["generated_text"])
    )


def _is_generated_text_dict(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and isinstance(payload.get("generated_text"), str)
        and bool(payload["generated_text"])
    )


def _is_plain_string(payload: Any) -> bool:
    return isinstance(payload, str)


# Known response envelopes, probed in order. Anything else is stringified whole.
ENVELOPES: List[Tuple[str, Callable[[Any], bool], Callable[[Any], str]]] = [
    ("list_generated_text", _is_generated_text_list, lambda p: p[0]["generated_text"]),
    ("dict_generated_text", _is_generated_text_dict, lambda p: p["generated_text"]),
    ("plain_string", _is_plain_string, lambda p: p),
]


def unwrap_envelope(payload: Any) -> str:
    """Pull generated text out of whatever shape the endpoint returned."""
    for name, matches, extract in ENVELOPES:
        if matches(payload):
            logger.debug("Inference response matched envelope %s", name)
            return extract(payload)
    logger.debug("Inference response envelope unrecognized; stringifying payload")
    return json.dumps(payload, ensure_ascii=False)


class InferenceClient:
    """Calls a hosted text-generation endpoint with a bearer credential."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.endpoint = settings.endpoint_url

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.hf_api_key:
            headers["Authorization"] = f"Bearer {self.settings.hf_api_key}"
        return headers

    def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        body = {"inputs": prompt, "parameters": dict(GENERATION_PARAMETERS)}
        try:
            resp = requests.post(self.endpoint, headers=self._headers(), json=body)
        except requests.RequestException as exc:
            raise GenerationEndpointError("LLM error", details=str(exc)) from exc

        if not resp.ok:
            logger.warning(
                "Inference endpoint %s returned HTTP %s", self.endpoint, resp.status_code
            )
            raise GenerationEndpointError("LLM error", details=resp.text)

        try:
            payload = resp.json()
        except ValueError:
            return resp.text
        return unwrap_envelope(payload)


class TemplateGenerator:
    """Returns a fixed article template shaped like a well-behaved model reply."""

    def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        options = options or GenerationOptions()
        guidance_line = (
            f'*Generated with custom guidance: "{options.user_guidance}"*\n\n'
            if options.user_guidance
            else ""
        )
        article = (
            f"{guidance_line}"
            "Based on the processed content, this article presents key insights and "
            "information extracted from the source material. The content has been "
            "analyzed and transformed into a comprehensive article format.\n\n"
            "The source material contained valuable information that has been "
            "restructured and enhanced for better readability. This article maintains "
            "the core message while presenting it in an organized, engaging format.\n\n"
            "Through careful processing, the original content has been transformed into "
            "this article, giving readers a clear and concise overview of the main "
            "topics and insights.\n\n"
            f"*This article contains approximately {options.word_target} words as requested.*"
        )
        return json.dumps(
            {
                "title": "AI-Generated Article",
                "subheadings": ["Key Points", "Analysis", "Conclusion"],
                "article": article,
            },
            ensure_ascii=False,
        )


class LocalModelGenerator:
    """Runs a seq2seq model or a PEFT adapter directory in this process."""

    def __init__(self, model_name_or_path: str):
        import torch

        # Load tokenizer/model once per process for stable runtime performance.
        self.model_name_or_path = model_name_or_path
        self.tokenizer, self.model = self._load_tokenizer_and_model(model_name_or_path)
        self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        self.model.to(self.device)

    def _load_tokenizer_and_model(self, model_name_or_path: str):
        """Load either a full model or a PEFT adapter output."""
        from transformers import AutoModelForSeq2SeqLM, AutoTokenizer

        model_path = Path(model_name_or_path)
        is_local_adapter = (
            model_path.exists() and (model_path / "adapter_config.json").exists()
        )

        if is_local_adapter:
            from peft import PeftConfig, PeftModel

            peft_config = PeftConfig.from_pretrained(model_name_or_path)
            base_model_name = peft_config.base_model_name_or_path
            if not base_model_name:
                raise ValueError("Adapter config is missing `base_model_name_or_path`.")
            base_model = AutoModelForSeq2SeqLM.from_pretrained(base_model_name)
            model = PeftModel.from_pretrained(base_model, model_name_or_path)
            tokenizer = AutoTokenizer.from_pretrained(model_name_or_path)
            return tokenizer, model

        tokenizer = AutoTokenizer.from_pretrained(model_name_or_path)
        model = AutoModelForSeq2SeqLM.from_pretrained(model_name_or_path)
        return tokenizer, model

    def _build_params(self, options: GenerationOptions) -> Dict[str, int]:
        """Map the requested word count to a token budget."""
        max_new_tokens = min(
            GENERATION_PARAMETERS["max_new_tokens"], options.word_target * 2 + 100
        )
        return {"max_new_tokens": max_new_tokens}

    def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        import torch

        options = options or GenerationOptions()
        inputs = self.tokenizer(
            prompt,
            return_tensors="pt",
            truncation=True,
            max_length=2048,
        ).to(self.device)

        with torch.no_grad():
            output_ids = self.model.generate(
                **inputs,
                do_sample=False,
                **self._build_params(options),
            )

        return self.tokenizer.decode(output_ids[0], skip_special_tokens=True)


def get_generator(settings: Settings):
    """Build the generation backend selected in settings."""
    if settings.generation_backend == "mock":
        return TemplateGenerator()
    if settings.generation_backend == "local":
        return _get_local_generator(settings.hf_model)
    return InferenceClient(settings)


@lru_cache(maxsize=1)
def _get_local_generator(model_name_or_path: str) -> LocalModelGenerator:
    """Return a cached local generator to avoid repeated model loading."""
    return LocalModelGenerator(model_name_or_path=model_name_or_path)
