from __future__ import annotations

from typing import Any, Dict

import pytest


def make_raw_dataset() -> Dict[str, Any]:
    return {
        "risks": [
            {"id": 1, "name": "Information Disclosure"},
            {"id": 2, "name": "Service Disruption"},
        ],
        "components": [
            {"id": 10, "name": "Web Application", "controls": [100, 101]},
            {"id": 11, "name": "Database", "controls": [102]},
        ],
        "controls": [
            {"id": 100, "name": "Multi-factor Authentication"},
            {"id": 101, "name": "Web Application Firewall"},
            {"id": 102, "name": "Encryption at Rest", "component": 11},
        ],
        "weight_sets": [
            {
                "id": 1, "risk": 1, "control": 100, "component": 10,
                "likelihood": 8, "impact": 6,
                "likelihood_penalty": 25, "impact_penalty": 0,
            },
            {
                "id": 2, "risk": 2, "control": 101,
                "likelihood": 5, "impact": 4,
                "likelihood_penalty": 0, "impact_penalty": 50,
            },
            {
                "id": 3, "risk": 1, "control": 102,
                "likelihood": 2, "impact": 3,
            },
        ],
        "pillars": [{"id": 5, "name": "Security"}],
        "tasks": [
            {
                "id": 20,
                "name": "Penetration Test",
                "type": "RiskQuestionnaire",
                "risk_calculation": "Maximum",
                "questions": [
                    {
                        "id": 201,
                        "title": "Is the service exposed?",
                        "fields": [
                            {
                                "id": 2010,
                                "label": "Exposure",
                                "multiple_choice": True,
                                "selections": [
                                    {
                                        "id": 2011, "label": "Public", "value": "public",
                                        "risks": [{"risk": 2, "weight": 40}],
                                    },
                                    {"id": 2012, "label": "Internal", "value": "internal"},
                                ],
                            },
                        ],
                    },
                ],
            },
        ],
        "questionnaires": [
            {
                "id": 30,
                "name": "Initial Risk Assessment",
                "type": "RiskQuestionnaire",
                "risk_calculation": "NztaApproxRepresentation",
                "expire_after_days": 20,
                "key_information": (
                    "<h2>Before you start</h2>"
                    "<p>Answer for the <strong>production</strong> system.</p><p>&nbsp;</p>"
                ),
                "pillar": 5,
                "tasks": [20],
                "questions": [
                    {
                        "id": 301,
                        "title": "Does the system store personal data?",
                        "fields": [
                            {
                                "id": 3010,
                                "label": "Personal data",
                                "multiple_choice": True,
                                "selections": [
                                    {
                                        "id": 3011, "label": "Yes", "value": "yes",
                                        "risks": [{"risk": 1, "weight": 50}],
                                    },
                                    {"id": 3012, "label": "No", "value": "no", "risks": []},
                                ],
                            },
                        ],
                    },
                    {
                        "id": 302,
                        "title": "Where is it hosted?",
                        "fields": [
                            {
                                "id": 3020,
                                "label": "Hosting",
                                "multiple_choice": True,
                                "selections": [
                                    {
                                        "id": 3021, "label": "Cloud", "value": "cloud",
                                        "risks": [{"risk": 2, "weight": 10}],
                                    },
                                ],
                            },
                        ],
                    },
                ],
            },
            {
                "id": 31,
                "name": "Project Kickoff",
                "type": "Questionnaire",
                "questions": [
                    {
                        "id": 311,
                        "title": "Anything else?",
                        "fields": [
                            {
                                "id": 3110,
                                "label": "Other",
                                "multiple_choice": True,
                                "selections": [
                                    {
                                        "id": 3111, "label": "A", "value": "a",
                                        "risks": [{"risk": 1, "weight": 90}],
                                    },
                                ],
                            },
                        ],
                    },
                ],
            },
        ],
        "submissions": [
            {
                "id": 1,
                "questionnaire": 30,
                "answers": [3011, 2011],
                "components": [10],
                "created": "2026-01-01",
            },
            {"id": 2, "questionnaire": 31, "answers": [3111]},
        ],
    }


@pytest.fixture
def raw_dataset() -> Dict[str, Any]:
    return make_raw_dataset()
