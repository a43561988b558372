"""Audio Insight MCP: Gemini-powered voicemail transcription and caller extraction."""
