#!/usr/bin/env python3
import os

import aws_cdk as cdk
from dotenv import load_dotenv
from aws_cdk import Aspects
from cdk_nag import AwsSolutionsChecks

from image_thumbnail.image_thumbnail_stack import ImageThumbnailStack


load_dotenv()
account = os.getenv("AWS_ACCOUNT_ID")
region = os.getenv("AWS_REGION")

app = cdk.App()

stack = ImageThumbnailStack(
    app, "ImageThumbnailStack",
    originals_bucket_name=os.getenv("ORIGINALS_FOLDER", "image-thumb-originals"),
    thumbnails_bucket_name=os.getenv("THUMBNAILS_FOLDER", "image-thumb-thumbnails"),
    thumbnail_max_width=int(os.getenv("THUMBNAIL_MAX_WIDTH", "150")),
    thumbnail_max_height=int(os.getenv("THUMBNAIL_MAX_HEIGHT", "150")),
    env=cdk.Environment(account=account, region=region),
)

Aspects.of(app).add(AwsSolutionsChecks())

app.synth()
