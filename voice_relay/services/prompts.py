"""
Prompt table for the text tools.

Every (operation, language) pair maps to a system message and a user template
with a ``{text}`` placeholder. Unknown languages get the Traditional Chinese
defaults, which also forbid Simplified characters in the answer.
"""
from enum import Enum
from typing import NamedTuple, Optional


class TextOperation(str, Enum):
    SUMMARIZE = "summarize"
    HIGHLIGHT = "highlight"
    POLISH = "polish"

    @property
    def response_field(self) -> str:
        return _RESPONSE_FIELDS[self]


_RESPONSE_FIELDS = {
    TextOperation.SUMMARIZE: "summarizedText",
    TextOperation.HIGHLIGHT: "highlightedText",
    TextOperation.POLISH: "polishedText",
}

SUPPORTED_LANGUAGES = ("en", "ja", "zh-TW", "id", "vi", "th")


class PromptPair(NamedTuple):
    system: str
    user_template: str

    def render(self, text: str) -> str:
        return self.user_template.format(text=text)


DEFAULT_PROMPTS: dict[TextOperation, PromptPair] = {
    TextOperation.SUMMARIZE: PromptPair(
        "你是一個幫助生成摘要的助手，請確保輸出為繁體中文，絕對不准出現簡體字。",
        "請總結以下內容:請確保輸出為繁體中文，絕對不准出現簡體字。\n\n{text}",
    ),
    TextOperation.HIGHLIGHT: PromptPair(
        "你是一個幫助提取重點的助手，請確保輸出為繁體中文，絕對不准出現簡體字。",
        "請從以下內容中提取三個重點:請確保輸出為繁體中文，絕對不准出現簡體字。\n\n{text}",
    ),
    TextOperation.POLISH: PromptPair(
        "你是一個幫助修飾文本的助手，請確保輸出為繁體中文，絕對不准出現簡體字。",
        "請修飾以下內容:並且跟原意思相近，並確保輸出為繁體中文，絕對不准出現簡體字\n\n{text}",
    ),
}

PROMPTS: dict[tuple[TextOperation, str], PromptPair] = {
    # ----- summarize -----
    (TextOperation.SUMMARIZE, "en"): PromptPair(
        "You are an assistant who helps to summarize the text.",
        "Please summarize the following content:\n\n{text}",
    ),
    (TextOperation.SUMMARIZE, "ja"): PromptPair(
        "あなたはテキストを要約するアシスタントです。",
        "次の内容を要約してください:\n\n{text}",
    ),
    (TextOperation.SUMMARIZE, "zh-TW"): PromptPair(
        "你是一個幫助生成摘要的助手，請確保輸出為繁體中文。",
        DEFAULT_PROMPTS[TextOperation.SUMMARIZE].user_template,
    ),
    (TextOperation.SUMMARIZE, "id"): PromptPair(
        "Anda adalah asisten yang membantu meringkas teks.",
        "Silakan ringkas konten berikut:\n\n{text}",
    ),
    (TextOperation.SUMMARIZE, "vi"): PromptPair(
        "Bạn là trợ lý giúp tóm tắt văn bản.",
        "Vui lòng tóm tắt nội dung sau:\n\n{text}",
    ),
    (TextOperation.SUMMARIZE, "th"): PromptPair(
        "คุณคือผู้ช่วยที่ช่วยสรุปข้อความ ",
        "กรุณาสรุปเนื้อหาต่อไปนี้: \n\n{text}",
    ),
    # ----- highlight (three key points) -----
    (TextOperation.HIGHLIGHT, "en"): PromptPair(
        "You are an assistant who helps to extract key points from the text.",
        "Please extract three key points from the following content:\n\n{text}",
    ),
    (TextOperation.HIGHLIGHT, "ja"): PromptPair(
        "あなたはテキストから要点を抽出するアシスタントです。",
        "次の内容から三つの要点を抽出してください:\n\n{text}",
    ),
    (TextOperation.HIGHLIGHT, "zh-TW"): PromptPair(
        "你是一個幫助提取重點的助手，請確保輸出為繁體中文。",
        DEFAULT_PROMPTS[TextOperation.HIGHLIGHT].user_template,
    ),
    (TextOperation.HIGHLIGHT, "id"): PromptPair(
        "Anda adalah asisten yang membantu mengekstrak poin utama dari teks.",
        "Silakan ekstrak tiga poin utama dari konten berikut:\n\n{text}",
    ),
    (TextOperation.HIGHLIGHT, "vi"): PromptPair(
        "Bạn là trợ lý giúp trích xuất các điểm chính từ văn bản.",
        "Vui lòng trích xuất ba điểm chính từ nội dung sau:\n\n{text}",
    ),
    (TextOperation.HIGHLIGHT, "th"): PromptPair(
        "คุณเป็นผู้ช่วยที่ช่วยสกัดจุดสำคัญจากข้อความ ",
        "กรุณาสกัดจุดสำคัญจากเนื้อหาต่อไปนี้: \n\n{text}",
    ),
    # ----- polish -----
    (TextOperation.POLISH, "en"): PromptPair(
        "You are an assistant who helps to polish the text.",
        "Please polish the following content:\n\n{text}",
    ),
    (TextOperation.POLISH, "ja"): PromptPair(
        "あなたはテキストを修飾するアシスタントです。",
        "次の内容を修飾してください:\n\n{text}",
    ),
    (TextOperation.POLISH, "zh-TW"): PromptPair(
        "你是一個幫助修飾文本的助手，請確保輸出為繁體中文，並保留英文人名或詞彙。",
        DEFAULT_PROMPTS[TextOperation.POLISH].user_template,
    ),
    (TextOperation.POLISH, "id"): PromptPair(
        "Anda adalah asisten yang membantu memperhalus teks.",
        "Silakan perhalus konten berikut:\n\n{text}",
    ),
    (TextOperation.POLISH, "vi"): PromptPair(
        "Bạn là trợ lý giúp chỉnh sửa văn bản.",
        "Vui lòng chỉnh sửa nội dung sau:\n\n{text}",
    ),
    (TextOperation.POLISH, "th"): PromptPair(
        "คุณคือผู้ช่วยในการช่วยขัดเกลาข้อความ ",
        "กรุณาช่วยขัดเกลาข้อความต่อไปนี้: \n\n{text}",
    ),
}


def get_prompt(operation: TextOperation, language: Optional[str]) -> PromptPair:
    return PROMPTS.get((operation, language or ""), DEFAULT_PROMPTS[operation])


def build_messages(operation: TextOperation, text: str, language: Optional[str]) -> list[dict[str, str]]:
    prompt = get_prompt(operation, language)
    return [
        {"role": "system", "content": prompt.system},
        {"role": "user", "content": prompt.render(text)},
    ]
