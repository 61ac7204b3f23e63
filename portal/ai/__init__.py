"""
portal/ai
Gemini-backed assistants: prompts, input guards and the model wrapper
"""
