from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from unidesk.models import CommunityPost, PostTypeEnum, PostStatusEnum, enum_values
from unidesk.extensions import db, limiter
from unidesk_utils.audit import log_event
from unidesk_utils.decorators import role_required, get_current_user
from unidesk_utils.pagination import apply_pagination_and_search, pagination_payload
from unidesk_utils.parsing import request_data, missing_fields, parse_bool

community_bp = Blueprint('community', __name__)


def _visible_to(user, post):
    if post.status == PostStatusEnum.published:
        return True
    if user.role_name == "admin":
        return True
    return post.author_id == user.id and post.status == PostStatusEnum.draft


@community_bp.route('/list', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def list_posts():
    user = get_current_user()

    query = CommunityPost.query
    status = request.args.get("status")
    if user.role_name == "admin" and status:
        try:
            query = query.filter(CommunityPost.status == PostStatusEnum(status))
        except ValueError:
            return jsonify({"error": "Invalid status"}), 400
    else:
        query = query.filter(or_(
            CommunityPost.status == PostStatusEnum.published,
            (CommunityPost.author_id == user.id) & (CommunityPost.status == PostStatusEnum.draft),
        ))

    if request.args.get("post_type"):
        try:
            query = query.filter(CommunityPost.post_type == PostTypeEnum(request.args["post_type"]))
        except ValueError:
            return jsonify({"error": "Invalid post_type"}), 400
    if request.args.get("category"):
        query = query.filter(CommunityPost.category == request.args["category"])

    paginated = apply_pagination_and_search(
        query.order_by(CommunityPost.is_pinned.desc(), CommunityPost.created_at.desc()),
        CommunityPost,
        request.args.get("search", type=str),
        ["title", "content"],
        request.args.get("page", 1, type=int),
        request.args.get("per_page", 10, type=int)
    )
    return jsonify(pagination_payload(paginated, "posts")), 200


@community_bp.route('/<int:post_id>', methods=['GET'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def get_post(post_id):
    user = get_current_user()
    post = CommunityPost.query.get_or_404(post_id)
    if not _visible_to(user, post):
        return jsonify({"error": "Post not found"}), 404

    post.views = (post.views or 0) + 1
    db.session.commit()
    return jsonify(post.to_dict()), 200


@community_bp.route('/create', methods=['POST'])
@limiter.limit("10 per minute")
@jwt_required()
@role_required("admin", "lecturer", "student")
def create_post():
    user = get_current_user()
    data = request_data(request)

    missing = missing_fields(data, ("post_type", "title", "content"))
    if missing:
        return jsonify({"error": f"Missing required fields: {missing}"}), 400

    if data["post_type"] not in enum_values(PostTypeEnum):
        return jsonify({"error": "Invalid post_type"}), 400
    if data["post_type"] == "announcement" and user.role_name == "student":
        return jsonify({"error": "Only staff can post announcements"}), 403

    status = data.get("status", "published")
    if status not in ("draft", "published"):
        return jsonify({"error": "New posts are either draft or published"}), 400

    is_anonymous = parse_bool(data.get("is_anonymous"))
    post = CommunityPost(
        post_type=PostTypeEnum(data["post_type"]),
        title=data["title"].strip(),
        content=data["content"],
        category=data.get("category"),
        author_id=user.id,
        is_anonymous=is_anonymous,
        is_official=user.role_name == "admin" and parse_bool(data.get("is_official")),
        status=PostStatusEnum(status),
        upvotes=0,
        downvotes=0,
        views=0,
    )
    db.session.add(post)
    db.session.commit()
    return jsonify({"message": "Post created", "post": post.to_dict()}), 201


@community_bp.route('/<int:post_id>/vote', methods=['POST'])
@limiter.limit("30 per minute")
@jwt_required()
@role_required("admin", "lecturer", "student")
def vote(post_id):
    user = get_current_user()
    post = CommunityPost.query.get_or_404(post_id)
    if post.status != PostStatusEnum.published:
        return jsonify({"error": "Only published posts can be voted on"}), 400

    direction = (request.get_json(silent=True) or {}).get("direction")
    if direction == "up":
        post.upvotes = (post.upvotes or 0) + 1
    elif direction == "down":
        post.downvotes = (post.downvotes or 0) + 1
    else:
        return jsonify({"error": "direction must be 'up' or 'down'"}), 400

    db.session.commit()
    return jsonify({"upvotes": post.upvotes, "downvotes": post.downvotes}), 200


@community_bp.route('/update/<int:post_id>', methods=['PUT'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def update_post(post_id):
    """Authors edit their own text; status and pinning are admin-only."""
    user = get_current_user()
    post = CommunityPost.query.get_or_404(post_id)
    data = request_data(request)
    is_admin = user.role_name == "admin"

    if not is_admin and post.author_id != user.id:
        return jsonify({"error": "You can only edit your own posts"}), 403
    if not is_admin and ({"status", "is_pinned", "is_official"} & set(data)):
        return jsonify({"error": "Only admins can change status or pin posts"}), 403

    for field in ("title", "content", "category"):
        if field in data:
            setattr(post, field, data[field])

    if "status" in data:
        if data["status"] not in enum_values(PostStatusEnum):
            return jsonify({"error": "Invalid status"}), 400
        post.status = PostStatusEnum(data["status"])
        if post.status == PostStatusEnum.published:
            post.approved_by = user.id
            post.approved_at = datetime.utcnow()
    if "is_pinned" in data:
        post.is_pinned = parse_bool(data["is_pinned"])
    if "is_official" in data:
        post.is_official = parse_bool(data["is_official"])

    db.session.commit()
    return jsonify({"message": "Post updated", "post": post.to_dict()}), 200


@community_bp.route('/remove/<int:post_id>', methods=['DELETE'])
@jwt_required()
@role_required("admin", "lecturer", "student")
def remove_post(post_id):
    user = get_current_user()
    post = CommunityPost.query.get_or_404(post_id)
    if user.role_name != "admin" and post.author_id != user.id:
        return jsonify({"error": "You can only remove your own posts"}), 403

    if user.role_name == "admin" and post.author_id != user.id:
        post.status = PostStatusEnum.removed
        log_event("POST_REMOVED", user_id=user.id, ip=request.remote_addr, description=f"post {post.id}")
    else:
        db.session.delete(post)
    db.session.commit()
    return jsonify({"message": "Post removed"}), 200
