from .book_pipeline import BookPipeline, PipelineOptions, PipelineResult, resume_book

__all__ = ["BookPipeline", "PipelineOptions", "PipelineResult", "resume_book"]
