"""Loading of model prompts shipped with the package."""

from pathlib import Path


def load_prompt(name: str) -> str:
    """Load a prompt from a .md file in the prompts directory.

    Args:
        name: Name of the prompt file (without extension)

    Returns:
        The content of the prompt file as a string.

    Raises:
        FileNotFoundError: If the prompt file does not exist.

    """
    prompt_path = Path(__file__).parent.parent / 'prompts' / f'{name}.md'

    if not prompt_path.exists():
        raise FileNotFoundError(f'Prompt file not found: {prompt_path}')

    return prompt_path.read_text(encoding='utf-8').strip()
