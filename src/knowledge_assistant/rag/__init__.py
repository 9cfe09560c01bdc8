"""Retrieval-Augmented Generation (RAG) pipeline.

This module handles:
- Prompt assembly from retrieved document chunks
- Response generation with the Gemini API
- The question-answering state machine and conversation log
"""
