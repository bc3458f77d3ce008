"""
Interviewer prompt and greeting templates.

Builds the per-session AgentConfig from the job role and resume text.
User-supplied text is escaped before it is interpolated so that a
literal backslash (for example "C:\\users" or "\\u00e9" pasted from a
resume) reaches the provider verbatim instead of being read as an
escape sequence.
"""

from __future__ import annotations

from .models import AgentConfig, ModelConfig, PromptMessage


INTERVIEW_PROMPT_TEMPLATE = """You are an expert technical interviewer conducting a professional job interview for the position of {role}.

CANDIDATE'S RESUME:
{resume}

YOUR ROLE:
- Conduct a thorough, professional interview based on the candidate's resume and the job role
- Ask relevant technical and behavioral questions appropriate for {role}
- Listen carefully to responses and ask follow-up questions
- Evaluate skills, experience, and cultural fit
- Be conversational but professional
- The interview should last 10-15 minutes

INTERVIEW STRUCTURE:
1. Start with a warm greeting and brief introduction
2. Ask about their background and experience from their resume
3. Ask 3-4 technical questions relevant to {role}
4. Ask 2-3 behavioral/situational questions
5. Give them a chance to ask questions
6. Close professionally

Be natural in conversation, show active listening, and adapt questions based on their responses. Maintain a friendly but professional tone throughout."""

FIRST_MESSAGE_TEMPLATE = (
    "Hello! Thank you for taking the time to interview with us today for the "
    "{role} position. I've reviewed your resume and I'm excited to learn more "
    "about your experience. Shall we get started?"
)

# Shown locally as soon as the session goes live, before the agent speaks.
OPENING_LINE_TEMPLATE = (
    "Hello! Thank you for taking the time to interview with us today for the {role} position."
)


def escape_for_transport(text: str) -> str:
    """Double every backslash so no `\\uXXXX`-style sequence survives transport."""
    if not isinstance(text, str):
        return text
    return text.replace("\\", "\\\\")


def generate_interview_prompt(role: str, resume_text: str) -> str:
    """Render the interviewer system prompt with escaped user text."""
    return INTERVIEW_PROMPT_TEMPLATE.format(
        role=escape_for_transport(role),
        resume=escape_for_transport(resume_text),
    )


def generate_first_message(role: str) -> str:
    return FIRST_MESSAGE_TEMPLATE.format(role=escape_for_transport(role))


def opening_line(role: str) -> str:
    return OPENING_LINE_TEMPLATE.format(role=role)


def build_agent_config(role: str, resume_text: str) -> AgentConfig:
    """
    Build a fresh AgentConfig for one session start.

    Args:
        role: Job role entered by the user.
        resume_text: Resume text entered or extracted from an upload.

    Returns:
        A new immutable AgentConfig. Never cached.
    """
    return AgentConfig(
        role=role,
        model=ModelConfig(
            messages=(
                PromptMessage(
                    role="system",
                    content=generate_interview_prompt(role, resume_text),
                ),
            ),
        ),
        first_message=generate_first_message(role),
    )
