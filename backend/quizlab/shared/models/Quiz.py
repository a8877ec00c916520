# quizlab/shared/models/Quiz.py
"""
Modèles de stockage des tests (adaptateur, hors engine).

Test → Questions → QuestionOptions
     → TestResults (condition_type + condition_value JSON)
     → UserResponses (tentatives, result_id NULL si no-match)

test_results.condition_value :
    score   : {"min": 0, "max": 10}         max = null → borne ouverte
    pattern : {"tags": ["A", "B"], "ordered": true}

Les ids sont des UUID texte générés côté application (engine.definition.model.new_id).
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quizlab.core.database import Base


class Test(Base):
    __tablename__ = "tests"
    __test__ = False

    id            = Column(String(36), primary_key=True)
    title         = Column(String,  nullable=False, default="")
    slug          = Column(String,  nullable=False, unique=True, index=True)
    category_id   = Column(Integer, nullable=True, index=True)   # registre externe, opaque
    description   = Column(Text,    nullable=True)
    emoji         = Column(String,  nullable=True)
    start_message = Column(Text,    nullable=True)
    is_published  = Column(Boolean, default=False, nullable=False)
    tags          = Column(JSON,    nullable=False, default=list)
    created_at    = Column(DateTime(timezone=True), server_default=func.now())

    questions = relationship(
        "Question", back_populates="test", cascade="all, delete-orphan",
        order_by="Question.order_index",
    )
    results = relationship(
        "TestResult", back_populates="test", cascade="all, delete-orphan",
        order_by="TestResult.order_index",
    )
    responses = relationship("UserResponse", back_populates="test", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Test id={self.id} slug={self.slug} published={self.is_published}>"


class Question(Base):
    __tablename__ = "questions"
    id          = Column(String(36), primary_key=True)
    test_id     = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)
    text        = Column(Text,    nullable=False, default="")

    test    = relationship("Test", back_populates="questions")
    options = relationship(
        "QuestionOption", back_populates="question", cascade="all, delete-orphan",
        order_by="QuestionOption.order_index",
    )

    def __repr__(self):
        return f"<Question id={self.id} order={self.order_index}>"


class QuestionOption(Base):
    __tablename__ = "question_options"
    id          = Column(String(36), primary_key=True)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)   # position d'affichage, jamais la clé de sélection
    text        = Column(Text,    nullable=False, default="")
    score       = Column(Integer, nullable=False, default=0)
    tag         = Column(String,  nullable=True)

    question = relationship("Question", back_populates="options")


class TestResult(Base):
    __tablename__ = "test_results"
    __test__ = False

    id              = Column(String(36), primary_key=True)
    test_id         = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    order_index     = Column(Integer, nullable=False)   # ordre de l'auteur = départage
    title           = Column(String,  nullable=False, default="")
    description     = Column(Text,    nullable=True)
    keywords        = Column(JSON,    nullable=False, default=list)
    recommendations = Column(JSON,    nullable=False, default=list)
    condition_type  = Column(String,  nullable=False)   # "score" | "pattern"
    condition_value = Column(JSON,    nullable=False)

    test = relationship("Test", back_populates="results")

    def __repr__(self):
        return f"<TestResult id={self.id} type={self.condition_type}>"


class UserResponse(Base):
    __tablename__ = "user_responses"
    id          = Column(Integer, primary_key=True, index=True)
    test_id     = Column(String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    result_id   = Column(String(36), ForeignKey("test_results.id", ondelete="SET NULL"), nullable=True)
    answers     = Column(JSON,    nullable=False)   # [{"question_id", "option_id"}, ...]
    total_score = Column(Integer, nullable=False)
    pattern     = Column(JSON,    nullable=False, default=list)
    created_at  = Column(DateTime(timezone=True), server_default=func.now())

    test   = relationship("Test", back_populates="responses")
    result = relationship("TestResult")

    def __repr__(self):
        return f"<UserResponse id={self.id} test={self.test_id} result={self.result_id}>"
