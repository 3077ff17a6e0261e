"""
Prompt Templates for the Lead Scoring Engine.

Manages the prompts sent to the language model for lead analysis.
"""

from enum import Enum
from typing import Optional


class PromptType(Enum):
    """Types of prompts."""
    LEAD_ANALYSIS = "lead_analysis"


class PromptTemplates:
    """
    Manages prompt templates for semantic lead analysis.

    Templates target a German language school whose leads often write in
    a mix of Malayalam and English.
    """

    SYSTEM_PROMPTS = {
        PromptType.LEAD_ANALYSIS: """You are an expert lead analyzer for {brand_name}, a German language school in Kerala, India.
You read conversations with prospective students and judge their intent and conversion potential.
Return only a valid JSON object. No markdown, no backticks, no extra text.""",
    }

    USER_TEMPLATES = {
        "lead_analysis": """Analyze the following conversation and determine the lead's intent and conversion potential.

CONTEXT:
- The school offers German language courses (A1, A2, B1, B2 levels)
- Users often mix Malayalam and English (Manglish)
- Common Malayalam words: "ethra" (how much), "eppo" (when), "undo" (is there), "aavum" (will be), "cheyyan" (to do)

CONVERSATION:
\"\"\"
{conversation}
\"\"\"

Return ONLY a valid JSON object:
{{
  "intentStrength": <number 0-100>,
  "sentiment": "<positive|neutral|negative>",
  "conversionProbability": <number 0-100>,
  "urgency": "<high|medium|low>",
  "reasoning": "<brief explanation of your analysis>",
  "detectedLanguages": ["<language codes like 'en', 'ml'>"],
  "keySignals": ["<array of key phrases or signals you detected>"]
}}

SCORING GUIDE:
Intent Strength (0-100):
- 80-100: Clear enrollment intent ("join", "enroll", "interested", "cheyyan interested")
- 60-79: Strong inquiry ("fee ethra", "when start", "eppo start", asking about pricing/schedule)
- 40-59: Moderate interest ("trial class undo", "details venam", general questions)
- 20-39: Weak interest (casual questions, comparisons)
- 0-19: No clear intent (generic comments like "nice", "ok")

Sentiment:
- positive: Enthusiastic, complimentary, ready to proceed
- neutral: Factual questions, neutral tone
- negative: Complaints, concerns, price objections

Conversion Probability (0-100): weigh intent strength, sentiment, number of
interactions, specificity of questions, mentions of pricing/timeline/enrollment
and urgency indicators.

Urgency:
- high: Asking for immediate enrollment, mentions deadlines, time-sensitive
- medium: Interested but comparing options, needs more info
- low: Just browsing, unclear timeline

Key Signals: important phrases that indicate intent, even if in Malayalam
(e.g. "fee ethra", "join cheyyan", "eppo start", "trial class", "enroll").

Return the JSON object now:""",
    }

    @classmethod
    def get_system_prompt(
        cls,
        prompt_type: PromptType = PromptType.LEAD_ANALYSIS,
        brand_name: str = "German Language School",
        custom_instructions: Optional[str] = None
    ) -> str:
        """
        Get system prompt for a given type.

        Args:
            prompt_type: Type of prompt
            brand_name: School name to use
            custom_instructions: Additional custom instructions

        Returns:
            Formatted system prompt
        """
        prompt = cls.SYSTEM_PROMPTS[prompt_type].format(brand_name=brand_name)

        if custom_instructions:
            prompt += f"\n\nAdditional instructions:\n{custom_instructions}"

        return prompt

    @classmethod
    def get_user_prompt(cls, template_name: str, **kwargs) -> str:
        """
        Get formatted user prompt.

        Args:
            template_name: Name of the template
            **kwargs: Template variables

        Returns:
            Formatted user prompt
        """
        template = cls.USER_TEMPLATES[template_name]
        return template.format(**kwargs)

    @classmethod
    def build_lead_analysis_prompt(cls, conversation: str) -> str:
        """Build the lead analysis prompt around the raw conversation text."""
        return cls.get_user_prompt("lead_analysis", conversation=conversation)
