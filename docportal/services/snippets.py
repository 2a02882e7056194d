#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Slash commands: markdown templates the editor inserts when the author types
``/name``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Any


SLASH_COMMANDS: list[dict[str, str]] = [
    {
        "command":     "/callout",
        "title":       "Callout",
        "description": "Insert a callout block (Note, Warning, Info, etc.)",
        "icon":        "fa-info-circle",
        "template":    "<Note>\nYour note content here...\n</Note>",
    },
    {
        "command":     "/tabs",
        "title":       "Tabs",
        "description": "Insert tabbed content",
        "icon":        "fa-folder",
        "template":    ('<Tabs>\n<Tab title="Tab 1" icon="code">\nContent for tab 1\n</Tab>\n'
                        '<Tab title="Tab 2" icon="gear">\nContent for tab 2\n</Tab>\n</Tabs>'),
    },
    {
        "command":     "/steps",
        "title":       "Steps",
        "description": "Insert numbered progress steps",
        "icon":        "fa-list-ol",
        "template":    ('<Steps>\n<Step title="First Step">\nInstructions for step 1\n</Step>\n'
                        '<Step title="Second Step" icon="check">\nInstructions for step 2\n</Step>\n</Steps>'),
    },
    {
        "command":     "/accordion",
        "title":       "Accordion",
        "description": "Insert collapsible accordion",
        "icon":        "fa-chevron-down",
        "template":    '<Accordion title="FAQ Title" icon="question">\nYour answer content...\n</Accordion>',
    },
    {
        "command":     "/accordiongroup",
        "title":       "Accordion Group",
        "description": "Insert multiple accordions",
        "icon":        "fa-list",
        "template":    ('<AccordionGroup>\n<Accordion title="Question 1">\nAnswer 1\n</Accordion>\n'
                        '<Accordion title="Question 2">\nAnswer 2\n</Accordion>\n</AccordionGroup>'),
    },
    {
        "command":     "/code",
        "title":       "Code Group",
        "description": "Insert multi-language code examples",
        "icon":        "fa-code",
        "template":    ('<CodeGroup>\n```javascript example.js\nconsole.log("Hello");\n```\n\n'
                        '```python example.py\nprint("Hello")\n```\n</CodeGroup>'),
    },
    {
        "command":     "/columns",
        "title":       "Columns",
        "description": "Insert multi-column card layout",
        "icon":        "fa-columns",
        "template":    ('<Columns cols={2}>\n<Card title="Card 1" icon="rocket">\nDescription\n</Card>\n'
                        '<Card title="Card 2" icon="star">\nDescription\n</Card>\n</Columns>'),
    },
    {
        "command":     "/frame",
        "title":       "Frame",
        "description": "Insert image container with caption",
        "icon":        "fa-image",
        "template":    '<Frame caption="Screenshot description">\n![Alt text](/path/to/image.png)\n</Frame>',
    },
    {
        "command":     "/expandable",
        "title":       "Expandable",
        "description": "Insert collapsible section",
        "icon":        "fa-expand",
        "template":    '<Expandable title="Advanced Options" defaultOpen=true>\nHidden content here...\n</Expandable>',
    },
    {
        "command":     "/field",
        "title":       "Response Field",
        "description": "Insert API documentation field",
        "icon":        "fa-database",
        "template":    '<ResponseField name="id" type="string" required>\nThe unique identifier\n</ResponseField>',
    },
    {
        "command":     "/h1",
        "title":       "Heading 1",
        "description": "Insert level 1 heading",
        "icon":        "fa-heading",
        "template":    "# Heading 1\n\n",
    },
    {
        "command":     "/h2",
        "title":       "Heading 2",
        "description": "Insert level 2 heading",
        "icon":        "fa-heading",
        "template":    "## Heading 2\n\n",
    },
    {
        "command":     "/h3",
        "title":       "Heading 3",
        "description": "Insert level 3 heading",
        "icon":        "fa-heading",
        "template":    "### Heading 3\n\n",
    },
    {
        "command":     "/list",
        "title":       "Bullet List",
        "description": "Insert bullet list",
        "icon":        "fa-list-ul",
        "template":    "- Item 1\n- Item 2\n- Item 3\n",
    },
    {
        "command":     "/ordered",
        "title":       "Ordered List",
        "description": "Insert numbered list",
        "icon":        "fa-list-ol",
        "template":    "1. First item\n2. Second item\n3. Third item\n",
    },
    {
        "command":     "/table",
        "title":       "Table",
        "description": "Insert markdown table",
        "icon":        "fa-table",
        "template":    ("| Header 1 | Header 2 | Header 3 |\n"
                        "|----------|----------|----------|\n"
                        "| Cell 1   | Cell 2   | Cell 3   |\n"
                        "| Cell 4   | Cell 5   | Cell 6   |\n"),
    },
    {
        "command":     "/image",
        "title":       "Image",
        "description": "Insert image syntax",
        "icon":        "fa-file-image",
        "template":    "![Alt text](/path/to/image.png)\n",
    },
]


# -----------------------------------------------------------------------------

def filter_commands(query: str = "") -> list[dict[str, str]]:
    """Commands whose name, title or description contains *query* (case-insensitive)."""
    q = query.lower().lstrip("/")
    if not q:
        return list(SLASH_COMMANDS)
    return [
        c for c in SLASH_COMMANDS
        if q in c["command"].lower() or q in c["title"].lower() or q in c["description"].lower()
    ]


def get_command(name: str) -> dict[str, str] | None:
    name = name if name.startswith("/") else f"/{name}"
    return next((c for c in SLASH_COMMANDS if c["command"] == name), None)


def insert_command(text: str, slash_position: int, cursor: int,
                   command: dict[str, Any]) -> tuple[str, int]:
    """Replace ``text[slash_position:cursor]`` (the typed ``/query``) with the template.

    Returns the new text and the cursor position at the end of the template.
    """
    if not 0 <= slash_position <= cursor <= len(text):
        raise ValueError("slash_position and cursor must delimit a range inside text")
    before = text[:slash_position]
    new_text = before + command["template"] + text[cursor:]
    return new_text, len(before) + len(command["template"])


# -----------------------------------------------------------------------------
