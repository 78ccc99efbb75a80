from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import torch
from transformers import AutoModelForCausalLM, AutoTokenizer

logger = logging.getLogger("railgraph.oracles")

JSON_INSTRUCTION = "You are a planning assistant for a railway network. Reply with one JSON object and nothing else."


def render_prompt(tokenizer: Any, prompt: str) -> str:
    """
    Wrap ``prompt`` in the model's chat template when it ships one.

    Base models without a template get the instruction prepended as plain text.
    """
    if getattr(tokenizer, "chat_template", None):
        messages = [
            {"role": "system", "content": JSON_INSTRUCTION},
            {"role": "user", "content": prompt},
        ]
        return tokenizer.apply_chat_template(
            messages,
            tokenize=False,
            add_generation_prompt=True,
        )
    return f"{JSON_INSTRUCTION}\n\n{prompt}\n\nJSON:"


class HuggingFaceBackend:
    """
    Local causal LM for running the oracles without a hosted API.

    Decoding is greedy at temperature 0 so replies are reproducible.
    """

    def __init__(
        self,
        *,
        model_name: str,
        hf_token: Optional[str] = None,
        device: Optional[str] = None,
        max_new_tokens: int = 512,
        temperature: float = 0.2,
        top_p: float = 0.9,
    ) -> None:
        if device is None:
            device = "cuda" if torch.cuda.is_available() else "cpu"
        self.device = device

        auth = {"token": hf_token} if hf_token else {}

        self.tokenizer = AutoTokenizer.from_pretrained(model_name, use_fast=True, **auth)
        if self.tokenizer.pad_token is None:
            self.tokenizer.pad_token = self.tokenizer.eos_token

        self.model = AutoModelForCausalLM.from_pretrained(
            model_name,
            torch_dtype=torch.float16 if device == "cuda" else torch.float32,
            **auth,
        ).to(device)
        self.model.eval()

        self.max_new_tokens = max_new_tokens
        self.temperature = temperature
        self.top_p = top_p
        logger.info("loaded %s on %s", model_name, device)

    def _sampling_kwargs(self) -> Dict[str, Any]:
        if self.temperature <= 0:
            return {"do_sample": False}
        return {"do_sample": True, "temperature": self.temperature, "top_p": self.top_p}

    def generate(self, prompt: str) -> str:
        text = render_prompt(self.tokenizer, prompt)
        inputs = self.tokenizer(text, return_tensors="pt").to(self.device)

        with torch.no_grad():
            output = self.model.generate(
                **inputs,
                max_new_tokens=self.max_new_tokens,
                pad_token_id=self.tokenizer.pad_token_id,
                eos_token_id=self.tokenizer.eos_token_id,
                **self._sampling_kwargs(),
            )

        # Only decode what the model added after the prompt.
        new_tokens = output[0][inputs["input_ids"].shape[-1]:]
        return self.tokenizer.decode(new_tokens, skip_special_tokens=True).strip()
