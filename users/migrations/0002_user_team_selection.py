import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("users", "0001_initial"),
        ("projects", "0001_initial"),
        ("teams", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="user",
            name="team",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="member_users",
                to="teams.team",
            ),
        ),
        migrations.AddField(
            model_name="user",
            name="selected_project",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="selected_by",
                to="projects.project",
            ),
        ),
        migrations.AddField(
            model_name="user",
            name="project_selected_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
