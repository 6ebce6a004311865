import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='AdminAccount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('password', models.CharField(max_length=128)),
                ('name', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Candidate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Candidate display name', max_length=100, validators=[django.core.validators.MaxLengthValidator(100)])),
                ('category', models.CharField(choices=[('king', 'King'), ('queen', 'Queen')], help_text='Contest category', max_length=5)),
                ('photo_url', models.CharField(blank=True, help_text='Path of the candidate photo', max_length=255, null=True)),
                ('vote_count', models.PositiveIntegerField(default=0, editable=False, help_text='Committed votes for this candidate')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['id'],
                'indexes': [models.Index(fields=['category', '-vote_count'], name='candidate_category_votes_idx')],
            },
        ),
        migrations.CreateModel(
            name='Setting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=64, unique=True)),
                ('value', models.TextField()),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='Vote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ip_address', models.CharField(help_text="Client IP address (may be 'unknown')", max_length=64)),
                ('cookie_token', models.CharField(help_text='Voter cookie token', max_length=64)),
                ('fingerprint', models.CharField(blank=True, help_text='Device fingerprint supplied by the client', max_length=255, null=True, unique=True)),
                ('voted_at', models.DateTimeField(auto_now_add=True)),
                ('king', models.ForeignKey(limit_choices_to={'category': 'king'}, on_delete=django.db.models.deletion.PROTECT, related_name='king_votes', to='contest.candidate')),
                ('queen', models.ForeignKey(limit_choices_to={'category': 'queen'}, on_delete=django.db.models.deletion.PROTECT, related_name='queen_votes', to='contest.candidate')),
            ],
            options={
                'ordering': ['-voted_at'],
                'indexes': [models.Index(fields=['-voted_at'], name='vote_voted_at_idx')],
                'constraints': [models.UniqueConstraint(fields=('ip_address', 'cookie_token'), name='unique_vote_per_ip_cookie')],
            },
        ),
    ]
