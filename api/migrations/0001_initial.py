from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Job",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("video_id", models.CharField(max_length=255, unique=True)),
                ("input_path", models.CharField(max_length=1024)),
                ("original_name", models.CharField(blank=True, default="", max_length=255)),
                ("status", models.CharField(
                    choices=[("processing", "Processing"), ("ready", "Ready"), ("failed", "Failed")],
                    default="processing",
                    max_length=16,
                )),
                ("renditions", models.JSONField(blank=True, default=list)),
                ("error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
    ]
