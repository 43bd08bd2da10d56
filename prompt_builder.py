# prompt_builder.py
# ------------------------------------------------------------
# Turns a DogInfo record into the text prompt sent to Gemini.
#
# It:
#   - introduces the model as a veterinary health analyst
#   - lists every questionnaire field, one per line
#   - asks for the five analysis facets we display
#   - spells out the exact JSON structure the reply must follow
#
# build_prompt is pure: same DogInfo in, same text out.
# ------------------------------------------------------------

from typing import Iterable

from models import DogInfo


# Placeholder for list fields the owner left empty
NONE_REPORTED = "None reported"

# Placeholder for an empty dietary preference field
STANDARD_DIET = "Standard diet"

ANALYST_PREAMBLE = """You are a highly knowledgeable veterinary health analyst AI specializing in canine health assessment and nutritional supplementation. Your expertise includes:

- Breed-specific health predispositions and genetic conditions
- Age-related health risks and preventive care
- Nutritional science and supplement interactions
- Evidence-based veterinary medicine
- Risk assessment and probability analysis

Always provide accurate, science-based recommendations while emphasizing that your analysis supplements but never replaces professional veterinary care. Be thorough but clear, and always include appropriate disclaimers about seeking professional veterinary advice.

Your response must be a valid JSON object matching the AssessmentResult structure exactly."""

ANALYSIS_REQUEST = """Based on this information, please provide a detailed analysis including:

1. Health risk assessment with specific conditions, their probability percentages, and prevention strategies
2. Evidence-based supplement recommendations with proper dosages, frequencies, and safety considerations
3. General health advice tailored to this specific dog
4. Assessment confidence level
5. Whether immediate veterinary consultation is recommended"""

RESPONSE_SCHEMA = """Please respond with a JSON object that exactly matches this structure:

{
  "dogInfo": <the provided dog info>,
  "healthPredictions": {
    "riskLevel": "low|moderate|high",
    "conditions": [
      {
        "name": "condition name",
        "probability": number (0-100),
        "description": "detailed description",
        "prevention": ["prevention strategy 1", "prevention strategy 2"]
      }
    ]
  },
  "supplementRecommendations": [
    {
      "name": "supplement name",
      "purpose": "why this supplement is recommended",
      "dosage": "specific dosage recommendation",
      "frequency": "how often to give",
      "benefits": ["benefit 1", "benefit 2"],
      "precautions": ["precaution 1", "precaution 2"],
      "priority": "essential|recommended|optional"
    }
  ],
  "generalAdvice": ["advice 1", "advice 2", "advice 3"],
  "vetVisitRecommended": boolean,
  "confidence": number (0-100)
}"""

CLOSING_GUIDANCE = (
    "Important: Base your analysis on current veterinary science, breed-specific research, "
    "and recognized nutritional guidelines. Consider breed predispositions, age-related risks, "
    "and the dog's current health status. Prioritize safety and always recommend veterinary "
    "consultation for concerning symptoms."
)


def _join_or_none(items: Iterable[str]) -> str:
    """Comma-join list entries in input order, or the placeholder when empty."""
    return ", ".join(items) or NONE_REPORTED


def build_prompt(dog: DogInfo) -> str:
    """
    Build the full prompt text for one analysis request.

    Every field of the DogInfo appears verbatim in the "Dog Information"
    block. Empty list fields render as "None reported" so the model never
    sees a dangling label.
    """
    reproductive_status = "spayed/neutered" if dog.neutered else "intact"

    profile = "\n".join([
        "Dog Information:",
        f"- Name: {dog.name}",
        f"- Breed: {dog.breed}",
        f"- Age: {dog.age} years",
        f"- Weight: {dog.weight} lbs",
        f"- Sex: {dog.sex} ({reproductive_status})",
        f"- Activity Level: {dog.activity_level}",
        f"- Exercise Hours: {dog.exercise_hours} hours/day",
        f"- Environment: {dog.environment}",
        f"- Previous Health Issues: {_join_or_none(dog.previous_health_issues)}",
        f"- Current Medications: {_join_or_none(dog.current_medications)}",
        f"- Current Symptoms: {_join_or_none(dog.symptoms)}",
        f"- Dietary Preferences: {dog.dietary_preferences or STANDARD_DIET}",
        f"- Known Allergies: {_join_or_none(dog.allergies)}",
    ])

    return "\n\n".join([
        ANALYST_PREAMBLE,
        "Please analyze the following dog's health profile and provide a comprehensive "
        "health risk assessment with personalized supplement recommendations.",
        profile,
        ANALYSIS_REQUEST,
        RESPONSE_SCHEMA,
        CLOSING_GUIDANCE,
    ])
