"""Приблизительная оценка количества токенов."""

import math

from .models import TokenSummary

CODE_INDICATORS = ("{", "}", "(", ")", ";", "function", "class", "const", "let")
TRUNCATION_MARKER = "\n\n... (truncated)"


class TokenEstimator:
    """
    Оценка стоимости текста в токенах LLM без токенизатора.

    Для кода символов на токен меньше (2.5), чем для прозы (4).
    """

    def __init__(
        self,
        code_chars_per_token: float = 2.5,
        text_chars_per_token: float = 4,
        changed_line_weight: float = 1.2,
        safety_margin: float = 0.9,
    ):
        self.code_chars_per_token = code_chars_per_token
        self.text_chars_per_token = text_chars_per_token
        self.changed_line_weight = changed_line_weight
        self.safety_margin = safety_margin

    def is_code(self, text: str) -> bool:
        return any(indicator in text for indicator in CODE_INDICATORS)

    def estimate(self, text: str) -> int:
        """Оценить количество токенов в тексте."""
        if not text:
            return 0
        ratio = self.code_chars_per_token if self.is_code(text) else self.text_chars_per_token
        return math.ceil(len(text) / ratio)

    def estimate_diff(self, diff: str) -> int:
        """Оценить токены для diff: добавленные и удалённые строки весят больше."""
        total = 0.0
        for line in diff.split("\n"):
            tokens = self.estimate(line)
            if line.startswith(("+", "-")):
                total += tokens * self.changed_line_weight
            else:
                total += tokens
        return math.ceil(total)

    def truncate(self, text: str, max_tokens: int) -> str:
        """
        Обрезать текст под лимит токенов.

        Возвращает префикс с маркером обрезки; оценка результата вместе с
        маркером не превышает max_tokens.
        """
        estimated = self.estimate(text)
        if estimated <= max_tokens:
            return text

        target = math.floor(len(text) * (max_tokens / estimated) * self.safety_margin)
        while target > 0:
            truncated = text[:target] + TRUNCATION_MARKER
            if self.estimate(truncated) <= max_tokens:
                return truncated
            target = math.floor(target * self.safety_margin)

        # Даже маркер не помещается
        return ""

    def split_by_budget(self, text: str, max_tokens: int) -> list[str]:
        """Разбить текст по строкам на части, каждая в пределах бюджета."""
        pieces: list[str] = []
        current: list[str] = []
        current_tokens = 0

        for line in text.split("\n"):
            line_tokens = self.estimate(line) + 1  # +1 за перевод строки

            if current_tokens + line_tokens > max_tokens and current:
                pieces.append("\n".join(current))
                current = [line]
                current_tokens = line_tokens
            else:
                current.append(line)
                current_tokens += line_tokens

        if current:
            pieces.append("\n".join(current))

        return pieces

    def summarize(self, texts: list[str]) -> TokenSummary:
        """Сводка по токенам для набора текстов."""
        counts = [self.estimate(text) for text in texts]
        if not counts:
            return TokenSummary()

        return TokenSummary(
            total=sum(counts),
            average=round(sum(counts) / len(counts)),
            max=max(counts),
            min=min(counts),
            counts=counts,
        )
