"""Audio extraction prompt templates.

EXTRACTION_INSTRUCTION — the fixed instruction sent alongside the inline
audio part by adapter.GeminiAudioAnalyzer. It names the six fields of
ExtractionResult in the order the schema declares them.
"""

from __future__ import annotations

EXTRACTION_INSTRUCTION = """\
この音声ファイルを解析し、以下の情報を抽出してください。音声は電話の録音や留守番電話の可能性があります。
1. 全文書き起こし
2. 相手の氏名（不明な場合は空文字）
3. 折り返しの電話番号（不明な場合は空文字）
4. 推定される性別（male, female, unknownのいずれか）
5. 抽出の信頼度(0-1)
6. 会話の短い要約
結果は必ず指定されたJSON形式で返してください。"""
