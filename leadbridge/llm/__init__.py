"""
Lead extraction with a language model
Prompts, response validation and the transcript extractor
"""
