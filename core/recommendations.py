from __future__ import annotations

from typing import List

RECOMMENDATIONS: List[str] = [
    "Reduce CO₂ emissions by implementing cleaner energy sources.",
    "Increase energy efficiency through modern technology upgrades.",
    "Monitor and optimize industrial processes for lower environmental impact.",
    "Encourage adoption of renewable energy across sectors.",
]


def get_recommendations() -> List[str]:
    return list(RECOMMENDATIONS)
