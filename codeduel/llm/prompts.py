from __future__ import annotations

from textwrap import dedent

from codeduel.normalizer import strip_code_fences


def solve_system_prompt() -> str:
    return (
        "You are an expert competitive programmer. Provide only the code solution "
        "in Python, no explanations, no markdown formatting, no code blocks."
    )


def solve_user_prompt(problem: str) -> str:
    return f"Solve this LeetCode problem:\n\n{problem}"


def reviewer_system_prompt() -> str:
    return "You are an expert code reviewer. Always respond with valid JSON."


def evaluation_prompt(problem: str, solution: str) -> str:
    """Full reviewer prompt, used where a separate system prompt is available."""
    code = strip_code_fences(solution)
    return (
        dedent(
            """
            You are an expert code reviewer. Evaluate this Python solution for a LeetCode problem.
            You don't know who wrote this code. Be objective and thorough.

            Problem:
            {problem}

            Solution to evaluate:
            {code}

            IMPORTANT: Respond ONLY with a valid JSON object, no additional text or markdown formatting.
            Provide your evaluation in this exact JSON format:
            {{
              "score": "X/10",
              "critique": "Brief analysis of the solution's strengths and weaknesses",
              "improvements": "Specific suggestions for optimization or enhancement",
              "verdict": "Overall assessment - is it perfect, good, or needs work?"
            }}

            Return ONLY the JSON object, nothing else.
            """
        )
        .strip()
        .format(problem=problem, code=code)
    )


def compact_evaluation_prompt(problem: str, solution: str) -> str:
    """Single-message reviewer prompt."""
    code = strip_code_fences(solution)
    return (
        dedent(
            """
            Evaluate this Python solution for a LeetCode problem.

            Problem: {problem}

            Solution to evaluate:
            {code}

            You must respond with ONLY a JSON object (no markdown, no explanation) in this exact format:
            {{"score": "X/10", "critique": "your analysis here", "improvements": "your suggestions here", "verdict": "your assessment here"}}
            """
        )
        .strip()
        .format(problem=problem, code=code)
    )
