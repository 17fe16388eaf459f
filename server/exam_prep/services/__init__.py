"""
Services package: LLM access, prompts, generation orchestration, analysis and data access.
"""
