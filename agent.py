import json
import logging
import os
from typing import Optional

from models import StakingAdvice, WalletAnalysis
from prompts import ANALYSIS_PROMPT, SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class WalletInsightsAgent:
    """LLM narrator for a finished staking analysis. Never alters the numbers it is given."""

    def __init__(self):
        self.provider = os.getenv("AI_PROVIDER", "anthropic").lower()

        if self.provider == "anthropic":
            self._init_anthropic()
        elif self.provider == "gemini":
            self._init_gemini()
        elif self.provider == "openai":
            self._init_openai()
        else:
            raise ValueError(
                f"Unknown AI_PROVIDER '{self.provider}'. "
                "Set AI_PROVIDER to 'anthropic', 'openai', or 'gemini'."
            )

    # ── Provider Init ─────────────────────────────────────────────────────

    def _init_anthropic(self):
        import anthropic

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError("ANTHROPIC_API_KEY is not set.")
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-6")
        logger.info("AI provider: Anthropic | model: %s", self.model)

    def _init_gemini(self):
        import google.generativeai as genai

        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise EnvironmentError("GEMINI_API_KEY is not set.")
        genai.configure(api_key=api_key)
        self.model = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.client = genai.GenerativeModel(self.model)
        logger.info("AI provider: Gemini | model: %s", self.model)

    def _init_openai(self):
        from openai import OpenAI

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise EnvironmentError("OPENAI_API_KEY is not set.")
        self.client = OpenAI(api_key=api_key)
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o")
        logger.info("AI provider: OpenAI | model: %s", self.model)

    # ── Generate Insights ─────────────────────────────────────────────────

    def build_prompt(self, analysis: WalletAnalysis, advice: Optional[StakingAdvice] = None) -> str:
        return ANALYSIS_PROMPT.format(
            network="testnet" if analysis.testnet_only else "mainnet",
            wallet_data=json.dumps(analysis.model_dump(), indent=2, default=str),
            advice_data=(
                json.dumps(advice.model_dump(), indent=2, default=str) if advice else "None"
            ),
        )

    def generate_insights(
        self, analysis: WalletAnalysis, advice: Optional[StakingAdvice] = None
    ) -> str:
        """Generate a natural-language walkthrough of the analysis."""
        prompt = self.build_prompt(analysis, advice)

        if self.provider == "anthropic":
            return self._call_anthropic(prompt)
        elif self.provider == "gemini":
            return self._call_gemini(prompt)
        elif self.provider == "openai":
            return self._call_openai(prompt)
        return ""

    def _call_anthropic(self, prompt: str) -> str:
        message = self.client.messages.create(
            model=self.model,
            max_tokens=4096,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return message.content[0].text

    def _call_gemini(self, prompt: str) -> str:
        response = self.client.generate_content(f"{SYSTEM_PROMPT}\n\n{prompt}")
        return response.text

    def _call_openai(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=4096,
        )
        return response.choices[0].message.content
