"""Exam preparation backend: AI question generation, exam analysis and question bank access."""
