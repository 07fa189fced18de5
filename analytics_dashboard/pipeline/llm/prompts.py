"""
All LLM prompts consolidated in one place
"""


# ============================================
# SOLUTION PROMPTS
# ============================================

def build_solution_prompt(error_message: str) -> list[dict]:
    """Ask for a one-sentence explanation plus exactly three fixes, JSON only"""
    user = f"""
Du bist ein Hilfsassistent für Entwickler.
Erkläre die folgende Fehlermeldung in einfacher Sprache in genau einem vollständigen Satz (länger als fünf Wörter) und nenne anschließend drei gängige Lösungsansätze oder Best Practices als Liste.
Gib ausschließlich JSON zurück im Format:
{{"explanation":"…","fixes":["…","…","…"]}}

Fehlermeldung:
{error_message}
"""

    return [{"role": "user", "content": user}]


# ============================================
# WORKFLOW PROMPTS
# ============================================

def build_workflow_instruction(prompt: str) -> str:
    """Minimal enhancement of the user's prompt before it is sent to the workflow service"""
    return f"""{prompt}

Please return results in JSON format suitable for visualization."""
