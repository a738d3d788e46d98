from enum import Enum

GENERATE_TEMPLATE = """\
You are an expert Next.js developer. Your task is to generate complete,
production-ready Next.js applications based on user descriptions.

## Requirements

1. Generate a complete file structure using the Next.js 14 App Router
2. Use only JavaScript (no TypeScript)
3. Use Tailwind CSS for styling
4. Create modern, responsive and professional designs
5. Use semantic HTML and accessibility best practices
6. Write clean, readable, well-commented code
7. Include a package.json with every required dependency
8. Keep all resources local and self-contained (no external scripts or CDN resources)

## Required Files

- app/page.js, app/layout.js, app/globals.css
- components/*.jsx
- package.json, next.config.js, tailwind.config.js, postcss.config.js

## Response Format

Return exactly this JSON structure and NOTHING else:
{
  "files": {
    "app/page.js": "// Main page content",
    "app/layout.js": "// Root layout",
    "app/globals.css": "/* Global styles */",
    "components/[ComponentName].jsx": "// Component code",
    "package.json": "// Package configuration",
    "next.config.js": "// Next.js config",
    "tailwind.config.js": "// Tailwind config",
    "postcss.config.js": "// PostCSS config"
  },
  "description": "Professional, concise description of the generated application"
}

## Design Guidelines

- Use appropriate color schemes and typography (system fonts)
- Implement responsive layouts that work on all devices
- Include proper spacing, shadows and visual hierarchy
- Use Tailwind's utility classes effectively
"""

UPDATE_TEMPLATE = """\
You are an expert Next.js developer. The user already has a generated
Next.js codebase (given below as JSON). NOW THEY WANT SPECIFIC CHANGES.

## Rules

- IGNORE any instructions about generating complete apps from scratch.
- ONLY modify the files the user asks about.
- Return exactly this JSON and NOTHING else:
  {
    "files": { /* ONLY the changed files, with their full new content */ },
    "description": "Brief description of the update"
  }
- DO NOT wrap the JSON in markdown or add commentary.
"""


class ConversationState(str, Enum):
    """Where a conversation stands with respect to its generated codebase."""

    EMPTY = "empty"  # nothing recoverable yet, generate from scratch
    IN_PROGRESS = "in_progress"  # a codebase exists, apply updates to it


def state_for(codebase_json: str | None) -> ConversationState:
    return ConversationState.IN_PROGRESS if codebase_json else ConversationState.EMPTY


def select_template(state: ConversationState) -> str:
    if state is ConversationState.IN_PROGRESS:
        return UPDATE_TEMPLATE
    return GENERATE_TEMPLATE


def build_prompt(user_prompt: str, codebase_json: str | None = None) -> str:
    """Assemble the full prompt: template, current codebase (if any), user request."""
    template = select_template(state_for(codebase_json))
    parts = [template]
    if codebase_json:
        parts.append(f"Current codebase JSON:\n{codebase_json}")
    parts.append(f"User Request: {user_prompt}")
    return "\n\n".join(parts)
