"""Prompt templates and tool schemas for transcript extraction.

Each list-style prompt asks for one item per line, or a sentinel token when
nothing was found. The sentinels are matched by ``devhub.meetings.parsing``.
"""

from __future__ import annotations

from typing import Any

NO_ACTION_ITEMS = "NO_ACTION_ITEMS"
NO_DECISIONS = "NO_DECISIONS"
NO_QUESTIONS = "NO_QUESTIONS"

SUMMARY_PROMPT = """\
Analyze this meeting transcript and write a concise but comprehensive summary.

Cover:
1. The purpose and objectives of the meeting
2. The main discussion points
3. Outcomes and conclusions
4. How the conversation flowed

Meeting Transcript:
{transcript}

Write the summary in 3-5 paragraphs.
"""

ACTION_ITEMS_PROMPT = """\
Analyze this meeting transcript and extract every action item, task, and \
commitment that was made.

For each action item, identify what needs to be done, who is responsible \
(if mentioned), any deadline, and a priority based on urgency cues.

Known participants: {participants}

Meeting Transcript:
{transcript}

Format each action item exactly as:
ITEM: [description]
ASSIGNED: [person name or 'Unassigned']
PRIORITY: [Urgent/High/Medium/Low]
NOTES: [additional context if any]
---

If there are no action items, respond with only 'NO_ACTION_ITEMS'.
"""

TOPICS_PROMPT = """\
Analyze this meeting transcript and list the key topics and themes discussed.

Give 5-10 topics that were central to the conversation: agenda items, \
technical areas, problems raised, and recurring themes.

Meeting Transcript:
{transcript}

Put each topic on its own line without numbering or bullets.
"""

DECISIONS_PROMPT = """\
Analyze this meeting transcript and list every decision that was made.

Look for explicit decisions ("we decided to...", "it was agreed that..."), \
approved proposals, chosen approaches, and resolved issues.

Meeting Transcript:
{transcript}

Put each decision on its own line. If no clear decisions were made, respond \
with only 'NO_DECISIONS'.
"""

OPEN_QUESTIONS_PROMPT = """\
Analyze this meeting transcript and list the questions that remain unanswered \
or need follow-up.

Look for unanswered direct questions, issues needing investigation, unclear \
points, and topics deferred to a later discussion.

Meeting Transcript:
{transcript}

Put each open question on its own line. If there are none, respond with only \
'NO_QUESTIONS'.
"""

SENTIMENT_PROMPT = """\
Assess the overall sentiment and tone of this meeting transcript: mood, \
collaboration versus conflict, engagement, and whether issues were resolved.

Meeting Transcript:
{transcript}

Respond with exactly one of these labels and nothing else:
VERY_POSITIVE - highly collaborative, productive, upbeat
POSITIVE - generally good mood, collaborative
NEUTRAL - balanced and professional
NEGATIVE - some tension, disagreement, or frustration
VERY_NEGATIVE - high conflict, unproductive

Response:
"""

# Tool definition for Claude structured output of action items
ACTION_ITEM_TOOL: dict[str, Any] = {
    "name": "store_action_items",
    "description": (
        "Store the action items extracted from a meeting transcript. "
        "Call this once with every action item found (an empty list if none)."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "action_items": {
                "type": "array",
                "description": "Tasks someone committed to or was asked to do.",
                "items": {
                    "type": "object",
                    "properties": {
                        "description": {
                            "type": "string",
                            "description": "What needs to be done.",
                        },
                        "assignee": {
                            "type": "string",
                            "description": "Person responsible, or empty if unassigned.",
                        },
                        "priority": {
                            "type": "string",
                            "enum": ["Urgent", "High", "Medium", "Low"],
                        },
                        "notes": {
                            "type": "string",
                            "description": "Extra context such as deadlines.",
                        },
                    },
                    "required": ["description"],
                },
            },
        },
        "required": ["action_items"],
    },
}
