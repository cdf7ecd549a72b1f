"""Sample corpus used by the CLI and for local experiments."""

from typing import List

from .models import Document

_SAMPLES = [
    ("1", "Machine Learning Fundamentals",
     "Introduction to machine learning algorithms, supervised and unsupervised learning techniques."),
    ("2", "Deep Learning with Neural Networks",
     "Advanced neural network architectures including CNNs, RNNs, and transformers for deep learning."),
    ("3", "Data Science Best Practices",
     "Best practices for data science projects, including data cleaning, feature engineering, and model evaluation."),
    ("4", "Python Programming Guide",
     "Comprehensive guide to Python programming for data science and machine learning applications."),
    ("5", "Statistical Analysis Methods",
     "Statistical methods for data analysis, hypothesis testing, and experimental design."),
    ("6", "AI Ethics and Responsible AI",
     "Ethical considerations in artificial intelligence development and deployment."),
    ("7", "Computer Vision Applications",
     "Computer vision techniques for image recognition, object detection, and image processing."),
    ("8", "Natural Language Processing",
     "NLP techniques for text analysis, sentiment analysis, and language understanding."),
    ("9", "Reinforcement Learning",
     "Reinforcement learning algorithms and applications in game playing and robotics."),
    ("10", "Big Data Technologies",
     "Technologies for processing and analyzing large-scale data including Hadoop and Spark."),
]


def sample_documents() -> List[Document]:
    """Return fresh copies of the bundled sample documents."""
    return [
        Document(id=doc_id, title=title, content=content, metadata={"source": "sample"})
        for doc_id, title, content in _SAMPLES
    ]
