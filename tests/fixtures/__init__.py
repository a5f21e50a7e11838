"""
Test fixtures for the Question Extractor.

Contains sample data for testing:
- sample_document.txt: Exam text as it arrives after PDF-to-text conversion
- valid_model_output.json: Model answer for sample_document.txt conforming to the schema
"""
