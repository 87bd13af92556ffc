from marshmallow import Schema, fields, pre_load, validate

from models.blog import BLOG_STATUSES
from models.schemas.common import strip_string


class BlogCreateSchema(Schema):
    title = fields.String(required=True, validate=validate.Length(min=5, max=200))
    content = fields.String(required=True, validate=validate.Length(min=50))
    excerpt = fields.String(validate=validate.Length(max=500))
    status = fields.String(required=True, validate=validate.OneOf(["draft", "published"]))
    featured_image = fields.Url()

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "title" in data:
            data = dict(data)
            data["title"] = strip_string(data["title"])
        return data


class BlogUpdateSchema(BlogCreateSchema):
    title = fields.String(validate=validate.Length(min=5, max=200))
    content = fields.String(validate=validate.Length(min=50))
    status = fields.String(validate=validate.OneOf(BLOG_STATUSES))


class BlogAuthorSchema(Schema):
    id = fields.String()
    name = fields.String()
    avatar = fields.String()


class BlogOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    slug = fields.String()
    content = fields.String()
    excerpt = fields.String(allow_none=True)
    status = fields.String()
    featured_image = fields.String()
    reading_time = fields.Integer()
    views = fields.Integer()
    likes = fields.Integer()
    author_id = fields.String()
    author = fields.Nested(BlogAuthorSchema)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
