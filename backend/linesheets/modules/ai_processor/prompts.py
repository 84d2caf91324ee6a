# linesheets/modules/ai_processor/prompts.py

from __future__ import annotations
import json
from typing import Dict, Any

def analysis_schema() -> Dict[str, Any]:
    """Claves fijas que el modelo debe devolver."""
    return {
        "sentiment": "positive / negative / neutral",
        "urgency": "high / medium / low",
        "importance": "high / medium / low",
        "category": "business / personal / support / inquiry",
        "keywords": ["重要キーワード"],
        "summary": "50文字以内の要約",
        "action_required": "immediate / scheduled / none",
        "confidence_score": 0,
        "business_intent": "ビジネス上の意図 (任意)",
        "suggested_response": "推奨される返信 (任意)",
    }

def build_analysis_prompt(message_text: str) -> str:
    schema = json.dumps(analysis_schema(), ensure_ascii=False, indent=2)
    return f"""
以下のメッセージを分析してJSON形式で回答してください：

「{message_text}」

次の構造のJSONオブジェクト **のみ** を返してください（説明やマークダウンは不要）：

{schema}

📌 ルール:
- sentiment, urgency, importance, action_required は上記の値のいずれかを使用すること。
- keywords は文字列の配列。
- summary は50文字以内。
- confidence_score は0〜100の数値。
""".strip()

def messages_user_only(prompt: str) -> list[dict]:
    return [{"role": "user", "content": prompt}]
