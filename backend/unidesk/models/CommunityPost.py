from datetime import datetime
from unidesk.extensions import db
from .base import PostTypeEnum, PostStatusEnum

class CommunityPost(db.Model):
    __tablename__ = 'community_posts'

    id = db.Column(db.Integer, primary_key=True)
    post_type = db.Column(db.Enum(PostTypeEnum), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)  # NULL for anonymous posts
    is_anonymous = db.Column(db.Boolean, default=False)
    is_official = db.Column(db.Boolean, default=False)
    category = db.Column(db.String(100), nullable=True)
    upvotes = db.Column(db.Integer, default=0)
    downvotes = db.Column(db.Integer, default=0)
    views = db.Column(db.Integer, default=0)
    status = db.Column(db.Enum(PostStatusEnum), nullable=False, default=PostStatusEnum.published, index=True)
    is_pinned = db.Column(db.Boolean, default=False)
    approved_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = db.relationship('User', foreign_keys=[author_id])

    def to_dict(self):
        return {
            "id": self.id,
            "post_type": self.post_type.value if self.post_type else None,
            "title": self.title,
            "content": self.content,
            "author": None if self.is_anonymous or not self.author else self.author.full_name,
            "is_anonymous": self.is_anonymous,
            "is_official": self.is_official,
            "category": self.category,
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "views": self.views,
            "status": self.status.value if self.status else None,
            "is_pinned": self.is_pinned,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
