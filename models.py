# models.py
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple


SEXES = ("male", "female")
ACTIVITY_LEVELS = ("low", "moderate", "high")
ENVIRONMENTS = ("apartment", "house-small-yard", "house-large-yard", "farm")
RISK_LEVELS = ("low", "moderate", "high")
PRIORITIES = ("essential", "recommended", "optional")


def _unique(data: Dict[str, Any], key: str) -> Tuple[str, ...]:
    """Drop blanks and repeats from a list of strings, keeping input order."""
    items = data.get(key)
    if items is None:
        return ()
    if not isinstance(items, (list, tuple)):
        raise ValueError(f"{key} must be a list of strings")

    seen: List[str] = []
    for item in items:
        text = str(item).strip()
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def _positive_number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"{key} must be a positive number")
    return value


def _choice(data: Dict[str, Any], key: str, choices: Tuple[str, ...], default: str) -> str:
    value = data.get(key) or default
    if value not in choices:
        raise ValueError(f"{key} must be one of: {', '.join(choices)}")
    return value


@dataclass(frozen=True)
class DogInfo:
    """
    The questionnaire record describing one dog.
    Built once from user input and never changed afterwards.
    """
    name: str
    breed: str
    age: float                 # years
    weight: float              # lbs
    sex: str = "male"
    neutered: bool = False
    activity_level: str = "moderate"
    previous_health_issues: Tuple[str, ...] = ()
    current_medications: Tuple[str, ...] = ()
    dietary_preferences: str = ""
    allergies: Tuple[str, ...] = ()
    environment: str = "house-small-yard"
    exercise_hours: float = 1  # hours per day
    symptoms: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DogInfo":
        """
        Build a DogInfo from the camelCase wire shape.

        Raises:
            ValueError: if name/breed are blank, age/weight are not
            positive numbers, an enum field holds an unknown value, or a
            list field or the neutered flag has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("dogInfo must be a JSON object")

        name = str(data.get("name") or "").strip()
        breed = str(data.get("breed") or "").strip()
        if not name:
            raise ValueError("name is required")
        if not breed:
            raise ValueError("breed is required")

        exercise_hours = data.get("exerciseHours", 1)
        if isinstance(exercise_hours, bool) or not isinstance(exercise_hours, (int, float)):
            raise ValueError("exerciseHours must be a number")

        neutered = data.get("neutered")
        if neutered is None:
            neutered = False
        if not isinstance(neutered, bool):
            raise ValueError("neutered must be true or false")

        return cls(
            name=name,
            breed=breed,
            age=_positive_number(data, "age"),
            weight=_positive_number(data, "weight"),
            sex=_choice(data, "sex", SEXES, "male"),
            neutered=neutered,
            activity_level=_choice(data, "activityLevel", ACTIVITY_LEVELS, "moderate"),
            previous_health_issues=_unique(data, "previousHealthIssues"),
            current_medications=_unique(data, "currentMedications"),
            dietary_preferences=str(data.get("dietaryPreferences") or ""),
            allergies=_unique(data, "allergies"),
            environment=_choice(data, "environment", ENVIRONMENTS, "house-small-yard"),
            exercise_hours=exercise_hours,
            symptoms=_unique(data, "symptoms"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "breed": self.breed,
            "age": self.age,
            "weight": self.weight,
            "sex": self.sex,
            "neutered": self.neutered,
            "activityLevel": self.activity_level,
            "previousHealthIssues": list(self.previous_health_issues),
            "currentMedications": list(self.current_medications),
            "dietaryPreferences": self.dietary_preferences,
            "allergies": list(self.allergies),
            "environment": self.environment,
            "exerciseHours": self.exercise_hours,
            "symptoms": list(self.symptoms),
        }


@dataclass(frozen=True)
class HealthCondition:
    """
    One predicted condition.

    probability:
        0-100 as supplied by the model. Not clamped.
    """
    name: str
    probability: float
    description: str
    prevention: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "probability": self.probability,
            "description": self.description,
            "prevention": list(self.prevention),
        }


@dataclass(frozen=True)
class HealthPrediction:
    risk_level: str
    conditions: Tuple[HealthCondition, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskLevel": self.risk_level,
            "conditions": [c.to_dict() for c in self.conditions],
        }


@dataclass(frozen=True)
class SupplementRecommendation:
    """
    A supplement suggested by the model.

    priority:
        "essential", "recommended", or "optional"
    """
    name: str
    purpose: str
    dosage: str
    frequency: str
    benefits: Tuple[str, ...] = ()
    precautions: Tuple[str, ...] = ()
    priority: str = "recommended"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "purpose": self.purpose,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "benefits": list(self.benefits),
            "precautions": list(self.precautions),
            "priority": self.priority,
        }


@dataclass(frozen=True)
class AssessmentResult:
    """
    Normalized outcome of one analysis request.

    dog_info:
        Always the caller's own DogInfo, never the model's echo.

    confidence:
        Clamped to 0-100.
    """
    dog_info: DogInfo
    health_predictions: HealthPrediction
    supplement_recommendations: Tuple[SupplementRecommendation, ...] = ()
    general_advice: Tuple[str, ...] = ()
    vet_visit_recommended: bool = False
    confidence: float = 70

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dogInfo": self.dog_info.to_dict(),
            "healthPredictions": self.health_predictions.to_dict(),
            "supplementRecommendations": [s.to_dict() for s in self.supplement_recommendations],
            "generalAdvice": list(self.general_advice),
            "vetVisitRecommended": self.vet_visit_recommended,
            "confidence": self.confidence,
        }
